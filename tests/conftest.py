"""Shared test fixtures."""

from __future__ import annotations

import pytest

from svgeom.svg.element import EtreeElement, build_id_map, parse_svg_tree


# Marker documents

ARROW_MARKER_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 300 300">
  <defs>
    <marker id="dot" markerWidth="10" markerHeight="10" refX="5" refY="5" orient="auto">
      <rect x="0" y="0" width="10" height="10" fill="red"/>
    </marker>
    <marker id="arrow" viewBox="0 0 10 10" markerWidth="20" markerHeight="20" refX="10" refY="5"
            orient="auto-start-reverse" markerUnits="userSpaceOnUse">
      <path d="M 0 0 L 10 5 L 0 10 z" fill="black"/>
    </marker>
    <marker id="fixed" markerWidth="4" markerHeight="4" refX="2" refY="2" orient="90">
      <circle cx="2" cy="2" r="2"/>
    </marker>
  </defs>
  <path id="zigzag" d="M 10 10 L 110 10 L 110 110 L 210 110" stroke-width="2"
        marker-start="url(#dot)" marker-mid="url(#fixed)" marker-end="url(#arrow)"/>
  <polyline id="poly" points="0,0 50,0 50,50" marker-end="url(#dot)"/>
  <path id="broken" d="M 0 0 L 10 0" marker-end="url(#missing)"/>
</svg>'''

# Pattern documents

CHECKER_PATTERN_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 300">
  <defs>
    <pattern id="checker" x="0" y="0" width="0.25" height="0.25">
      <rect x="0" y="0" width="50" height="25" fill="black"/>
    </pattern>
    <pattern id="grid" patternUnits="userSpaceOnUse" x="0" y="0" width="20" height="20">
      <rect x="0" y="0" width="10" height="10" fill="blue"/>
      <rect x="10" y="10" width="10" height="10" fill="blue" opacity="0"/>
    </pattern>
    <pattern id="boxed" patternUnits="userSpaceOnUse" width="20" height="10" viewBox="0 0 10 10">
      <rect x="0" y="0" width="10" height="10"/>
    </pattern>
    <pattern id="percent" width="50%" height="25%" href="#checker">
      <rect width="1" height="1"/>
    </pattern>
    <pattern id="rotated" patternUnits="userSpaceOnUse" width="10" height="10"
             patternTransform="rotate(45)">
      <rect width="5" height="5"/>
    </pattern>
  </defs>
  <rect x="0" y="0" width="400" height="300" fill="url(#checker)"/>
</svg>'''

# Use/symbol documents

USE_SYMBOL_SVG = '''<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink"
     viewBox="0 0 200 200">
  <defs>
    <rect id="box" x="0" y="0" width="10" height="10"/>
    <symbol id="icon" viewBox="0 0 24 24">
      <rect x="0" y="0" width="24" height="24"/>
    </symbol>
    <g id="pair" fill="green">
      <rect x="0" y="0" width="5" height="5"/>
      <rect x="10" y="0" width="5" height="5" fill="yellow"/>
    </g>
    <g id="nested">
      <use href="#box" x="100"/>
    </g>
  </defs>
  <use id="u1" href="#box" x="20" y="30" fill="red"/>
  <use id="u2" xlink:href="#icon" x="10" y="20" width="48" height="48"/>
  <use id="u3" href="#pair" transform="scale(2)"/>
  <use id="u4" href="#nested" y="50"/>
  <use id="u5" href="#nowhere"/>
</svg>'''

CIRCULAR_USE_SVG = '''<svg xmlns="http://www.w3.org/2000/svg">
  <defs>
    <g id="a"><use href="#b"/></g>
    <g id="b"><use href="#a"/></g>
    <rect id="leaf" width="1" height="1"/>
  </defs>
  <use id="loop" href="#a"/>
  <use id="fine" href="#leaf" x="3"/>
</svg>'''


def element_by_id(svg_text: str, element_id: str) -> EtreeElement:
    return build_id_map(parse_svg_tree(svg_text))[element_id]


@pytest.fixture
def marker_doc() -> EtreeElement:
    return parse_svg_tree(ARROW_MARKER_SVG)


@pytest.fixture
def pattern_doc() -> EtreeElement:
    return parse_svg_tree(CHECKER_PATTERN_SVG)


@pytest.fixture
def use_doc() -> EtreeElement:
    return parse_svg_tree(USE_SYMBOL_SVG)
