"""Scaffold .env.example, docker-compose files and a port map from a manifest.

The manifest is JSON::

    {
      "env": [{"name": "DATABASE_URL", "description": "...", "example": "..."}],
      "composeFiles": [{"filename": "docker-compose.yml", "services": [...]}],
      "portMap": [{"service": "api", "internal": 3000, "external": 8080}]
    }
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from devkit.errors import FileError
from devkit.templates import render_template
from devkit.utils.files import write_json
from devkit.utils.logging import get_logger

logger = get_logger(__name__)

PROTOCOLS = {"tcp", "udp"}

# =============================================================================
# Manifest model
# =============================================================================


@dataclass
class EnvVariable:
    name: str
    description: str | None = None
    default_value: str | None = None
    example: str | None = None
    required: bool = True

    @property
    def value(self) -> str:
        """Example value, falling back to the default."""
        if self.example is not None:
            return self.example
        return self.default_value if self.default_value is not None else ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EnvVariable":
        return cls(
            name=data["name"],
            description=data.get("description"),
            default_value=data.get("defaultValue"),
            example=data.get("example"),
            required=data.get("required") is not False,
        )


@dataclass
class PortMapEntry:
    service: str
    internal: int
    external: int | None = None
    protocol: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        if self.protocol is not None and self.protocol not in PROTOCOLS:
            raise ValueError(f"Invalid protocol: {self.protocol}. Valid: {PROTOCOLS}")

    @property
    def mapping(self) -> str:
        """Compose port string ``host:container[/protocol]``."""
        host = self.external if self.external is not None else self.internal
        suffix = f"/{self.protocol}" if self.protocol else ""
        return f"{host}:{self.internal}{suffix}"

    @property
    def key(self) -> str:
        return f"{self.service}:{self.internal}"

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ComposeService:
    name: str
    image: str | None = None
    build_context: str | None = None
    command: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    ports: list[PortMapEntry] = field(default_factory=list)
    volumes: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComposeService":
        name = data["name"]
        return cls(
            name=name,
            image=data.get("image"),
            build_context=data.get("buildContext"),
            command=data.get("command"),
            environment=data.get("environment") or {},
            ports=[
                PortMapEntry(
                    service=name,
                    internal=port["internal"],
                    external=port.get("external"),
                    protocol=port.get("protocol"),
                    description=port.get("description"),
                )
                for port in data.get("ports") or []
            ],
            volumes=data.get("volumes") or [],
            depends_on=data.get("dependsOn") or [],
        )


@dataclass
class ComposeFile:
    services: list[ComposeService]
    filename: str = "docker-compose.yml"
    version: str = "3.9"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComposeFile":
        return cls(
            services=[ComposeService.from_dict(s) for s in data.get("services") or []],
            filename=data.get("filename") or "docker-compose.yml",
            version=data.get("version") or "3.9",
        )


@dataclass
class EnvManifest:
    env: list[EnvVariable] = field(default_factory=list)
    compose_files: list[ComposeFile] = field(default_factory=list)
    port_map: list[PortMapEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EnvManifest":
        return cls(
            env=[EnvVariable.from_dict(v) for v in data.get("env") or []],
            compose_files=[ComposeFile.from_dict(f) for f in data.get("composeFiles") or []],
            port_map=[PortMapEntry(**entry) for entry in data.get("portMap") or []],
        )


@dataclass
class EnvBootstrapResult:
    env_example_path: Path | None = None
    compose_paths: list[Path] = field(default_factory=list)
    port_map_path: Path | None = None
    missing: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "env_example_path": str(self.env_example_path) if self.env_example_path else None,
            "compose_paths": [str(p) for p in self.compose_paths],
            "port_map_path": str(self.port_map_path) if self.port_map_path else None,
            "missing": self.missing,
        }


# =============================================================================
# Rendering
# =============================================================================


def load_manifest(manifest_path: str | Path) -> EnvManifest:
    """Parse a manifest file.

    Raises:
        FileError: If the file cannot be read or is not valid JSON
    """
    path = Path(manifest_path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise FileError(f"Could not read manifest {path}: {e}", str(path), "read") from e
    except json.JSONDecodeError as e:
        raise FileError(f"Failed to parse manifest at {path}: {e}", str(path), "read") from e
    return EnvManifest.from_dict(data)


def render_env_example(variables: list[EnvVariable]) -> str:
    return render_template("env_example.j2", variables=variables).rstrip() + "\n"


def render_compose_file(compose: ComposeFile) -> str:
    return render_template("docker_compose.yml.j2", compose=compose)


def merge_ports(
    manifest_ports: list[PortMapEntry], compose_ports: list[PortMapEntry]
) -> list[PortMapEntry]:
    """Deduplicate by service and internal port. Compose-derived entries win."""
    merged: dict[str, PortMapEntry] = {}
    for entry in [*compose_ports, *manifest_ports]:
        merged.setdefault(entry.key, entry)
    return list(merged.values())


def _write_unless_exists(path: Path, content: str, overwrite: bool, label: str) -> None:
    if path.exists() and not overwrite:
        logger.warning("%s already exists at %s; skipping scaffold.", label, path)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.success(f"Wrote {path} from manifest.")


# =============================================================================
# Bootstrap
# =============================================================================


def bootstrap_env_from_manifest(
    manifest_path: str | Path,
    output_dir: str | Path | None = None,
    compose_dir: str | Path | None = None,
    port_map_path: str | Path | None = None,
    overwrite: bool = False,
) -> EnvBootstrapResult:
    """Generate environment scaffolding from a manifest.

    Existing files are left alone unless overwrite is set. Sections absent
    from the manifest are reported in ``missing``.

    Args:
        manifest_path: JSON manifest
        output_dir: Where .env.example and the port map go (default: manifest dir)
        compose_dir: Where compose files go (default: output_dir)
        port_map_path: Port map file (default: output_dir/ports.map.json)
        overwrite: Replace existing files
    """
    manifest = load_manifest(manifest_path)
    base_dir = Path(output_dir) if output_dir else Path(manifest_path).parent
    compose_base = Path(compose_dir) if compose_dir else base_dir
    port_map_file = Path(port_map_path) if port_map_path else base_dir / "ports.map.json"
    result = EnvBootstrapResult()

    if manifest.env:
        env_path = base_dir / ".env.example"
        _write_unless_exists(env_path, render_env_example(manifest.env), overwrite, ".env.example")
        result.env_example_path = env_path
    else:
        result.missing.append("env")

    if manifest.compose_files:
        for compose in manifest.compose_files:
            target = compose_base / compose.filename
            _write_unless_exists(target, render_compose_file(compose), overwrite, compose.filename)
            result.compose_paths.append(target)
    else:
        result.missing.append("composeFiles")

    derived = [port for f in manifest.compose_files for s in f.services for port in s.ports]
    ports = merge_ports(manifest.port_map, derived)
    if not ports:
        result.missing.append("portMap")
        return result

    result.port_map_path = port_map_file
    if port_map_file.exists() and not overwrite:
        logger.warning("Port map already exists at %s; skipping scaffold.", port_map_file)
    else:
        port_map_file.parent.mkdir(parents=True, exist_ok=True)
        write_json(port_map_file, {"ports": [port.to_dict() for port in ports]})
        logger.success(f"Wrote port map to {port_map_file}.")
    return result
