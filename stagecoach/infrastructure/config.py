"""
Configuration Module

Architectural Intent:
- Centralized loading of the deployment definition from a JSON file
- Provides typed access to nodes, applications, workflow and telemetry settings
- Falls back to sensible defaults when the config file is absent
- Environment variables override file-based config for scalar settings

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Nodes and applications are lists in the file and tuples once loaded
- Cross references (application -> node names) are validated at load time
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import json
import logging
import os

from stagecoach.domain.exceptions import ConfigurationError
from stagecoach.domain.value_objects.node import Node

logger = logging.getLogger(__name__)

_TOP_LEVEL_SCALARS = ("log_level", "log_json")


@dataclass(frozen=True)
class DeploymentConfig:
    """Deployment-wide settings."""
    name: str = "stagecoach"
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowConfig:
    """Workflow settings. Empty stages means the default pipeline."""
    enable_rollback: bool = True
    stages: tuple[str, ...] = ()


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False
    service_name: str = "stagecoach"


@dataclass(frozen=True)
class NodeConfig:
    name: str
    host: str
    user: Optional[str] = None
    port: int = 22


@dataclass(frozen=True)
class TaskConfig:
    type: str
    name: str = ""
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ApplicationConfig:
    name: str
    deployment_path: str = ""
    nodes: tuple[str, ...] = ()
    options: dict[str, Any] = field(default_factory=dict)
    # stage name -> tasks; empty means the default task set
    tasks: dict[str, tuple[TaskConfig, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class StagecoachConfig:
    """Root configuration for a stagecoach deployment."""
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    nodes: tuple[NodeConfig, ...] = ()
    applications: tuple[ApplicationConfig, ...] = ()
    log_level: str = "WARNING"
    log_json: bool = False


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)


def _env_override(data: dict, prefix: str = "STAGECOACH") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern STAGECOACH_SECTION_KEY.
    For example: STAGECOACH_WORKFLOW_ENABLE_ROLLBACK=false,
    STAGECOACH_DEPLOYMENT_NAME=shop, STAGECOACH_LOG_LEVEL=DEBUG
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        rest = key[len(prefix) + 1:].lower()
        if rest in _TOP_LEVEL_SCALARS:
            data[rest] = value
            continue
        parts = rest.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    for f in dataclasses.fields(cls):
        if f.name not in filtered:
            continue
        val = filtered[f.name]

        # Comma-separated strings and lists become tuples
        if f.type == "tuple[str, ...]":
            if isinstance(val, str):
                filtered[f.name] = tuple(v.strip() for v in val.split(",") if v.strip())
            elif isinstance(val, list):
                filtered[f.name] = tuple(val)

        if f.type == "int" and isinstance(val, str):
            filtered[f.name] = int(val)
        elif f.type == "bool":
            filtered[f.name] = _to_bool(val)

    try:
        return cls(**filtered)
    except TypeError as e:
        raise ConfigurationError(f"Invalid {cls.__name__}: {e}") from e


def _build_node(data: Any) -> NodeConfig:
    if isinstance(data, str):
        # "name=user@host:port" shorthand
        try:
            node = Node.parse(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid node {data!r}: {e}") from e
        return NodeConfig(name=node.name, host=node.host, user=node.user, port=node.port)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid node definition: {data!r}")
    return _build_sub_config(NodeConfig, data)


def _build_application(data: dict) -> ApplicationConfig:
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid application definition: {data!r}")
    tasks = {
        stage: tuple(
            _build_sub_config(TaskConfig, t if isinstance(t, dict) else {"type": t})
            for t in ([stage_tasks] if isinstance(stage_tasks, (str, dict)) else stage_tasks)
        )
        for stage, stage_tasks in data.get("tasks", {}).items()
    }
    return _build_sub_config(ApplicationConfig, {**data, "tasks": tasks})


def _validate(config: StagecoachConfig) -> None:
    names = [n.name for n in config.nodes]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Duplicate node names in {names}")
    for application in config.applications:
        for node_name in application.nodes:
            if node_name not in names:
                raise ConfigurationError(
                    f"Application {application.name} references unknown node {node_name!r}"
                )


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "STAGECOACH",
) -> StagecoachConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (STAGECOACH_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to stagecoach.json in CWD.
        env_prefix: Environment variable prefix. Defaults to STAGECOACH.
    """
    config_path = Path(path) if path else Path("stagecoach.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    config = StagecoachConfig(
        deployment=_build_sub_config(DeploymentConfig, data.get("deployment", {})),
        workflow=_build_sub_config(WorkflowConfig, data.get("workflow", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        nodes=tuple(_build_node(n) for n in data.get("nodes", [])),
        applications=tuple(_build_application(a) for a in data.get("applications", [])),
        log_level=str(data.get("log_level", "WARNING")),
        log_json=_to_bool(data.get("log_json", False)),
    )
    _validate(config)
    return config
