"""Ordered packaging lifecycle driven by a bundle policy."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Union

from ..errors import InstallError, SsrDeployError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .policy import BundlePolicy

logger = logging.getLogger(__name__)


class LifecycleStage(str, Enum):
    BEFORE_BUNDLING = "before_bundling"
    BEFORE_INSTALL = "before_install"
    INSTALL = "install"
    AFTER_BUNDLING = "after_bundling"

    @property
    def hook_name(self) -> str:
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest)


LIFECYCLE_ORDER = (
    LifecycleStage.BEFORE_BUNDLING,
    LifecycleStage.BEFORE_INSTALL,
    LifecycleStage.INSTALL,
    LifecycleStage.AFTER_BUNDLING,
)


@dataclass
class StageContext:
    """Per-build state handed to every stage handler."""

    input_dir: Path
    output_dir: Optional[Path] = None
    data: Dict[str, object] = field(default_factory=dict)


StageRunner = Callable[[StageContext], List[str]]


@dataclass(frozen=True)
class StageHandler:
    stage: LifecycleStage
    name: str
    run: StageRunner


@dataclass(slots=True)
class StageReport:
    stage: LifecycleStage
    name: str
    commands: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"stage": self.stage.value, "name": self.name, "commands": list(self.commands)}


@dataclass
class LifecycleResult:
    status: str = "ok"
    stages: List[StageReport] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    data: Dict[str, object] = field(default_factory=dict)

    @property
    def commands(self) -> List[str]:
        return [command for report in self.stages for command in report.commands]

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status,
            "stages": [report.to_dict() for report in self.stages],
            "commands": self.commands,
            "logs": list(self.logs),
            "data": dict(self.data),
        }


def run_stage(policy: "BundlePolicy", stage: LifecycleStage, context: StageContext) -> List[StageReport]:
    """Invoke every handler the policy registers for `stage`, in order."""

    reports: List[StageReport] = []
    for handler in policy.handlers_for(stage):
        logger.debug("Running %s handler %s", stage.value, handler.name)
        commands = list(handler.run(context) or [])
        reports.append(StageReport(stage=stage, name=handler.name, commands=commands))
    return reports


def run_lifecycle(
    policy: "BundlePolicy",
    context: StageContext,
    *,
    installer: Optional[StageRunner] = None,
) -> LifecycleResult:
    """Run before_bundling, before_install, install and after_bundling.

    Errors abort the remaining stages; nothing is retried.
    """

    result = LifecycleResult()
    for stage in LIFECYCLE_ORDER:
        if stage is LifecycleStage.INSTALL:
            if installer is None:
                result.logs.append("install: skipped (no installer configured)")
                continue
            commands = list(installer(context) or [])
            result.stages.append(StageReport(stage=stage, name="install", commands=commands))
            result.logs.append(f"install: completed in {context.input_dir}")
            continue
        try:
            reports = run_stage(policy, stage, context)
        except SsrDeployError:
            logger.error("Lifecycle aborted during %s", stage.value)
            raise
        result.stages.extend(reports)
        result.logs.append(f"{stage.value}: {len(reports)} handler(s)")
    result.data = dict(context.data)
    return result


def command_installer(command: Union[str, Sequence[str]]) -> StageRunner:
    """Build an installer that runs `command` inside the working directory."""

    argv = shlex.split(command) if isinstance(command, str) else list(command)
    if not argv:
        raise ValueError("Install command cannot be empty.")

    def _install(context: StageContext) -> List[str]:
        try:
            proc = subprocess.run(
                argv,
                cwd=str(context.input_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise InstallError(f"Install command {shlex.join(argv)!r} could not start: {exc}") from exc
        if proc.returncode != 0:
            detail = proc.stderr.strip() or proc.stdout.strip()
            raise InstallError(f"Install command {shlex.join(argv)!r} failed ({proc.returncode}): {detail}")
        return [shlex.join(argv)]

    return _install
