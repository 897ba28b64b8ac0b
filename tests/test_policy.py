from __future__ import annotations

from pathlib import Path

import pytest

from ssr_deploy.bundle.manifest import BundledDependencySet
from ssr_deploy.bundle.pipeline import LifecycleStage, StageContext, StageHandler
from ssr_deploy.bundle.policy import (
    BundlePolicy,
    ModuleFormat,
    build_bundle_policy,
    diagnostic_stage,
    policy_from_output,
)
from ssr_deploy.errors import ConfigurationError, FatalManifestError

from .conftest import write_json


def test_policy_fields(server_dir: Path) -> None:
    policy = policy_from_output(server_dir)
    assert policy.format is ModuleFormat.ESM
    assert policy.node_modules == ("pkgA", "pkgB")
    assert [handler.stage for handler in policy.stages] == [
        LifecycleStage.BEFORE_BUNDLING,
        LifecycleStage.BEFORE_INSTALL,
        LifecycleStage.AFTER_BUNDLING,
    ]


def test_policy_to_dict_shape() -> None:
    policy = build_bundle_policy(["pkgA"])
    assert policy.to_dict() == {
        "format": "esm",
        "nodeModules": ["pkgA"],
        "commandHooks": {
            "beforeBundling": ["beforeBundling"],
            "beforeInstall": ["reconcileManifest"],
            "afterBundling": ["afterBundling"],
        },
    }


def test_empty_bundled_set_excludes_nothing(tmp_path: Path) -> None:
    write_json(tmp_path / "package.json", {"bundledDependencies": []})
    assert policy_from_output(tmp_path).node_modules == ()


def test_diagnostic_stages_only_report(tmp_path: Path) -> None:
    policy = build_bundle_policy(BundledDependencySet())
    context = StageContext(input_dir=tmp_path)
    before, = policy.handlers_for(LifecycleStage.BEFORE_BUNDLING)
    after, = policy.handlers_for(LifecycleStage.AFTER_BUNDLING)
    assert before.run(context) == ["echo 'beforeBundling'"]
    assert after.run(context) == ["echo 'afterBundling'"]
    assert list(tmp_path.iterdir()) == []


def test_format_derived_from_manifest_type(tmp_path: Path) -> None:
    write_json(tmp_path / "package.json", {"type": "commonjs", "bundledDependencies": ["a"]})
    assert policy_from_output(tmp_path).format is ModuleFormat.CJS


def test_explicit_format_matching_manifest_is_accepted(server_dir: Path) -> None:
    assert policy_from_output(server_dir, format="ESM").format is ModuleFormat.ESM


def test_conflicting_format_is_rejected(server_dir: Path) -> None:
    with pytest.raises(ConfigurationError, match="conflicts"):
        policy_from_output(server_dir, format="cjs")


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unsupported module format"):
        build_bundle_policy([], format="umd")


def test_unknown_manifest_type_is_rejected(tmp_path: Path) -> None:
    write_json(tmp_path / "package.json", {"type": "amd"})
    with pytest.raises(ConfigurationError):
        policy_from_output(tmp_path)


def test_missing_server_manifest_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FatalManifestError):
        policy_from_output(tmp_path)


def test_duplicate_stage_names_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Duplicate"):
        build_bundle_policy([], extra_stages=[diagnostic_stage(LifecycleStage.AFTER_BUNDLING)])


def test_stage_order_enforced() -> None:
    stages = (
        diagnostic_stage(LifecycleStage.AFTER_BUNDLING),
        diagnostic_stage(LifecycleStage.BEFORE_BUNDLING),
    )
    with pytest.raises(ConfigurationError, match="out of lifecycle order"):
        BundlePolicy(format=ModuleFormat.ESM, stages=stages)


def test_install_stage_cannot_be_registered() -> None:
    handler = StageHandler(stage=LifecycleStage.INSTALL, name="npm", run=lambda context: [])
    with pytest.raises(ConfigurationError):
        BundlePolicy(format=ModuleFormat.ESM, stages=(handler,))


def test_extra_stages_sorted_into_lifecycle() -> None:
    audit = diagnostic_stage(LifecycleStage.BEFORE_BUNDLING, name="audit")
    policy = build_bundle_policy(["a"], extra_stages=[audit])
    assert [handler.name for handler in policy.handlers_for(LifecycleStage.BEFORE_BUNDLING)] == [
        "beforeBundling",
        "audit",
    ]
