"""Tests for the rewrite registry."""

import pytest

from svgeom.optimizer.config import OptimizerConfig
from svgeom.optimizer.pipeline import OptimizationContext, register_rewrites
from svgeom.optimizer.registry import RewriteRegistry, RewriteSpec, Stage, get_registry


def _noop(ctx: OptimizationContext) -> None:
    pass


def spec(rewrite_id, stage, *dependencies, switch=None):
    return RewriteSpec(id=rewrite_id, stage=stage, fn=_noop, dependencies=dependencies, switch=switch)


def test_register_and_get():
    reg = RewriteRegistry()
    s = spec("R0.01", Stage.NORMALIZE)
    reg.register(s)
    assert reg.get("R0.01") is s
    assert reg.all() == [s]


def test_duplicate_raises():
    reg = RewriteRegistry()
    reg.register(spec("R0.01", Stage.NORMALIZE))
    with pytest.raises(ValueError, match="Duplicate"):
        reg.register(spec("R0.01", Stage.NORMALIZE))


@pytest.mark.parametrize("rewrite_id", ["R2.01", "R1", "T1.01", "R1.1", "R1.001"])
def test_id_must_name_its_stage(rewrite_id):
    with pytest.raises(ValueError, match="does not name stage"):
        RewriteRegistry().register(spec(rewrite_id, Stage.SHORTHAND))


def test_dependencies_only_point_backwards():
    reg = RewriteRegistry()
    reg.register(spec("R1.02", Stage.SHORTHAND, "R0.01", "R1.01"))
    with pytest.raises(ValueError, match="or earlier"):
        reg.register(spec("R1.03", Stage.SHORTHAND, "R2.01"))
    with pytest.raises(ValueError, match="or earlier"):
        reg.register(spec("R1.04", Stage.SHORTHAND, "lines"))


def test_switch_must_be_a_config_flag():
    reg = RewriteRegistry()
    reg.register(spec("R1.01", Stage.SHORTHAND, switch="line_shorthands"))
    with pytest.raises(ValueError, match="unknown config switch"):
        reg.register(spec("R1.02", Stage.SHORTHAND, switch="float_precision"))


def test_disabled_by_config():
    reg = RewriteRegistry()
    reg.register(spec("R0.01", Stage.NORMALIZE))
    reg.register(spec("R1.01", Stage.SHORTHAND, switch="line_shorthands"))
    reg.register(spec("R2.02", Stage.ENCODING, switch="collapse_repeated"))
    assert reg.disabled_by(OptimizerConfig()) == set()
    assert reg.disabled_by(OptimizerConfig(line_shorthands=False, collapse_repeated=False)) == {"R1.01", "R2.02"}


def test_all_is_stage_order():
    reg = RewriteRegistry()
    reg.register(spec("R2.01", Stage.ENCODING))
    reg.register(spec("R1.02", Stage.SHORTHAND))
    reg.register(spec("R1.01", Stage.SHORTHAND))
    assert [s.id for s in reg.all()] == ["R1.01", "R1.02", "R2.01"]


def test_resolve_order_respects_dependencies():
    reg = RewriteRegistry()
    reg.register(spec("R0.01", Stage.NORMALIZE))
    reg.register(spec("R1.01", Stage.SHORTHAND, "R1.02"))
    reg.register(spec("R1.02", Stage.SHORTHAND, "R0.01"))
    assert [s.id for s in reg.resolve_order()] == ["R0.01", "R1.02", "R1.01"]


def test_requested_subset_ignores_missing_dependencies():
    reg = RewriteRegistry()
    reg.register(spec("R0.01", Stage.NORMALIZE))
    reg.register(spec("R1.01", Stage.SHORTHAND, "R0.01"))
    reg.register(spec("R2.01", Stage.ENCODING, "R1.01"))
    # R1.01 is switched off; R2.01 still runs and nothing pulls R1.01 back in
    assert [s.id for s in reg.resolve_order({"R0.01", "R2.01"})] == ["R0.01", "R2.01"]


def test_circular_dependency_detected():
    reg = RewriteRegistry()
    reg.register(spec("R1.01", Stage.SHORTHAND, "R1.02"))
    reg.register(spec("R1.02", Stage.SHORTHAND, "R1.01"))
    with pytest.raises(ValueError, match="Circular"):
        reg.resolve_order()


def test_builtin_passes_registered():
    register_rewrites()
    reg = get_registry()
    ids = {s.id for s in reg.all()}
    assert {"R0.01", "R1.01", "R1.02", "R1.03", "R2.01", "R2.02"} <= ids
    assert reg.get("R1.01").stage is Stage.SHORTHAND
    assert reg.get("R1.01").switch == "line_shorthands"
    assert not reg.get("R0.01").verify
    assert reg.get("R0.01").switch is None
    assert all(reg.get(rid).verify for rid in ids - {"R0.01"})


def test_builtin_order():
    register_rewrites()
    ordered = [s.id for s in get_registry().resolve_order({"R0.01", "R1.01", "R1.02", "R1.03", "R2.01", "R2.02"})]
    assert ordered == ["R0.01", "R1.03", "R1.01", "R1.02", "R2.01", "R2.02"]
