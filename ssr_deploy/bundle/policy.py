"""Bundle policy for packaging a pre-bundled server output."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import ConfigurationError
from ..schemas.package import ServerPackageManifest
from .manifest import BundledDependencySet, load_server_manifest
from .pipeline import LIFECYCLE_ORDER, LifecycleStage, StageContext, StageHandler
from .rewriter import reconcile_working_directory

logger = logging.getLogger(__name__)


class ModuleFormat(str, Enum):
    ESM = "esm"
    CJS = "cjs"


DEFAULT_FORMAT = ModuleFormat.ESM

MANIFEST_TYPE_FORMATS: Dict[str, ModuleFormat] = {
    "module": ModuleFormat.ESM,
    "commonjs": ModuleFormat.CJS,
}


@dataclass(frozen=True)
class BundlePolicy:
    """Packaging configuration handed to the deployment composer."""

    format: ModuleFormat
    node_modules: Tuple[str, ...] = ()
    stages: Tuple[StageHandler, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.format, ModuleFormat):
            raise ConfigurationError(f"Unsupported module format {self.format!r}")
        seen: set[str] = set()
        last_index = 0
        for handler in self.stages:
            if handler.stage is LifecycleStage.INSTALL:
                raise ConfigurationError(f"Stage handler '{handler.name}' cannot replace the packager install step.")
            if handler.name in seen:
                raise ConfigurationError(f"Duplicate stage handler name '{handler.name}'.")
            index = LIFECYCLE_ORDER.index(handler.stage)
            if index < last_index:
                raise ConfigurationError(
                    f"Stage handler '{handler.name}' ({handler.stage.value}) is out of lifecycle order."
                )
            seen.add(handler.name)
            last_index = index

    def handlers_for(self, stage: LifecycleStage) -> List[StageHandler]:
        return [handler for handler in self.stages if handler.stage is stage]

    def to_dict(self) -> Dict[str, object]:
        hooks: Dict[str, List[str]] = {}
        for handler in self.stages:
            hooks.setdefault(handler.stage.hook_name, []).append(handler.name)
        return {
            "format": self.format.value,
            "nodeModules": list(self.node_modules),
            "commandHooks": hooks,
        }


def coerce_format(value: Union[str, ModuleFormat, None]) -> Optional[ModuleFormat]:
    if value is None or isinstance(value, ModuleFormat):
        return value
    try:
        return ModuleFormat(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in ModuleFormat)
        raise ConfigurationError(f"Unsupported module format '{value}' (expected one of: {choices})") from exc


def format_for_manifest(
    manifest: ServerPackageManifest,
    requested: Union[str, ModuleFormat, None] = None,
) -> ModuleFormat:
    """Pick the module format, refusing requests that contradict the manifest."""

    explicit = coerce_format(requested)
    declared: Optional[ModuleFormat] = None
    if manifest.type is not None:
        declared = MANIFEST_TYPE_FORMATS.get(manifest.type)
        if declared is None:
            raise ConfigurationError(f"Unknown module type '{manifest.type}' in server manifest.")
    if explicit is not None and declared is not None and explicit is not declared:
        raise ConfigurationError(
            f"Requested format '{explicit.value}' conflicts with manifest type '{manifest.type}'."
        )
    return explicit or declared or DEFAULT_FORMAT


def diagnostic_stage(stage: LifecycleStage, name: Optional[str] = None) -> StageHandler:
    """A handler with no side effect other than reporting the stage it ran in."""

    label = stage.hook_name

    def _run(context: StageContext) -> List[str]:
        return [f"echo '{label}'"]

    return StageHandler(stage=stage, name=name or label, run=_run)


def reconcile_stage(bundled: BundledDependencySet) -> StageHandler:
    """The before_install handler that pins the bundled dependencies on disk."""

    label = LifecycleStage.BEFORE_INSTALL.hook_name

    def _run(context: StageContext) -> List[str]:
        result = reconcile_working_directory(context.input_dir, bundled)
        context.data["reconcile"] = result.to_dict()
        return [f"echo '{label}'"]

    return StageHandler(stage=LifecycleStage.BEFORE_INSTALL, name="reconcileManifest", run=_run)


def build_bundle_policy(
    bundled: Union[BundledDependencySet, Iterable[str]],
    *,
    format: Union[str, ModuleFormat] = DEFAULT_FORMAT,
    extra_stages: Iterable[StageHandler] = (),
) -> BundlePolicy:
    """Assemble the policy for a server output whose dependencies are pre-bundled."""

    if not isinstance(bundled, BundledDependencySet):
        bundled = BundledDependencySet.of(bundled)
    stages = [
        diagnostic_stage(LifecycleStage.BEFORE_BUNDLING),
        reconcile_stage(bundled),
        diagnostic_stage(LifecycleStage.AFTER_BUNDLING),
        *extra_stages,
    ]
    stages.sort(key=lambda handler: LIFECYCLE_ORDER.index(handler.stage))
    return BundlePolicy(
        format=coerce_format(format) or DEFAULT_FORMAT,
        node_modules=bundled.names,
        stages=tuple(stages),
    )


def policy_from_output(
    output_dir: Path,
    *,
    format: Union[str, ModuleFormat, None] = None,
    extra_stages: Iterable[StageHandler] = (),
) -> BundlePolicy:
    """Read the upstream server manifest once and build the policy from it."""

    manifest = load_server_manifest(Path(output_dir))
    module_format = format_for_manifest(manifest, format)
    policy = build_bundle_policy(
        BundledDependencySet.of(manifest.bundled_dependencies),
        format=module_format,
        extra_stages=extra_stages,
    )
    logger.debug("Built %s bundle policy excluding %d modules", policy.format.value, len(policy.node_modules))
    return policy
