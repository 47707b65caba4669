"""Transform builders and the SVG transform-attribute parser."""

from svgeom.transforms.transform_parser import parse_transform, to_svg_matrix

__all__ = ["parse_transform", "to_svg_matrix"]
