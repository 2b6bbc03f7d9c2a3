"""
Configuration schema for the restricted zone notifier.

This module defines the configuration structure for the notifier, including
the video source, person detection model, monitored zone, telemetry cadence
and MQTT settings.

Precedence (lowest to highest):
    dataclass defaults → YAML/JSON file → MQTT_* environment variables → CLI flags
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
import yaml

from zonesafe_zone import Zone


@dataclass(frozen=True)
class ModelConfig:
    """
    Person detection model configuration.

    Attributes:
        weights: Path or name of the ultralytics weights file (.pt/.onnx/OpenVINO dir)
        confidence: Minimum confidence factor; detections must score strictly above it
        device: Inference device passed to ultralytics ("cpu", "cuda:0", ...), None = auto
        person_class_id: Class id of "person" in the model's label map
        input_size: Inference image size
    """

    weights: str = "yolov8n.pt"
    confidence: float = 0.5
    device: Optional[str] = None
    person_class_id: int = 0
    input_size: int = 640

    def __post_init__(self):
        """Validate model configuration."""
        if not self.weights:
            raise ValueError("weights cannot be empty")

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be in [0.0, 1.0], got {self.confidence}"
            )

        if self.person_class_id < 0:
            raise ValueError(
                f"person_class_id must be >= 0, got {self.person_class_id}"
            )

        if not 32 <= self.input_size <= 1280:
            raise ValueError(
                f"input_size must be in [32, 1280], got {self.input_size}"
            )


@dataclass(frozen=True)
class ZoneConfig:
    """
    Monitored zone in frame pixels.

    Zero or negative width/height selects the whole frame; a negative origin
    selects (0, 0). Normalization is applied per frame by the zone monitor.
    """

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def to_zone(self) -> Zone:
        return Zone(x=self.x, y=self.y, width=self.width, height=self.height)


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    client_id: str = "zonesafe"
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 0

    status_topic: str = "machine/zone"
    control_topic: str = "machine/control"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if not self.status_topic:
            raise ValueError("status_topic cannot be empty")

    def with_env(self, environ: Optional[Mapping[str, str]] = None) -> "MQTTConfig":
        """
        Apply MQTT_* environment overrides.

        Variables:
            MQTT_SERVER: "host", "host:port" or "tcp://host:port"
            MQTT_CLIENT_ID, MQTT_USERNAME, MQTT_PASSWORD

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            New MQTTConfig with overrides applied
        """
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}

        server = env.get("MQTT_SERVER")
        if server:
            host, port = parse_server(server)
            overrides["broker"] = host
            if port is not None:
                overrides["port"] = port

        for variable, key in (
            ("MQTT_CLIENT_ID", "client_id"),
            ("MQTT_USERNAME", "username"),
            ("MQTT_PASSWORD", "password"),
        ):
            if env.get(variable):
                overrides[key] = env[variable]

        return replace(self, **overrides) if overrides else self

    @property
    def status_client_id(self) -> str:
        return f"{self.client_id}_status"

    @property
    def control_client_id(self) -> str:
        return f"{self.client_id}_control"


def parse_server(server: str) -> Tuple[str, Optional[int]]:
    """
    Split an MQTT server string into (host, port).

    Examples:
        "localhost" -> ("localhost", None)
        "broker:1884" -> ("broker", 1884)
        "tcp://broker:1883" -> ("broker", 1883)

    Raises:
        ValueError: If the port is not an integer
    """
    address = server.strip()
    if "://" in address:
        address = address.split("://", 1)[1]
    address = address.rstrip("/")

    if ":" not in address:
        return address, None

    host, port = address.rsplit(":", 1)
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"Invalid port in MQTT server '{server}'")


@dataclass(frozen=True)
class NotifierConfig:
    """
    Main configuration for the notifier service.

    Immutable after construction (frozen dataclass); CLI overrides produce a
    new instance through with_overrides().
    """

    # Video source: camera index ("0") or file path / stream URL
    video_source: str = "0"

    # Person detection model
    model_config: ModelConfig = field(default_factory=ModelConfig)

    # Monitored zone
    zone_config: ZoneConfig = field(default_factory=ZoneConfig)

    # MQTT configuration
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    # Seconds between safety heartbeats
    publish_interval: float = 1.0

    # Display
    show_window: bool = True
    key_delay_ms: int = 5

    # Worker tuning
    frame_poll_timeout: float = 0.1
    max_consecutive_failures: int = 10
    join_timeout: float = 30.0

    def __post_init__(self):
        """Validate notifier configuration."""
        if not str(self.video_source):
            raise ValueError("video_source cannot be empty")

        if self.publish_interval <= 0:
            raise ValueError(
                f"publish_interval must be > 0, got {self.publish_interval}"
            )

        if self.key_delay_ms < 1:
            raise ValueError(
                f"key_delay_ms must be >= 1, got {self.key_delay_ms}"
            )

        if self.frame_poll_timeout <= 0:
            raise ValueError(
                f"frame_poll_timeout must be > 0, got {self.frame_poll_timeout}"
            )

        if self.max_consecutive_failures < 1:
            raise ValueError(
                f"max_consecutive_failures must be >= 1, got {self.max_consecutive_failures}"
            )

    def with_overrides(
        self,
        video_source: Optional[str] = None,
        weights: Optional[str] = None,
        confidence: Optional[float] = None,
        device: Optional[str] = None,
        publish_interval: Optional[float] = None,
        zone: Optional[ZoneConfig] = None,
        show_window: Optional[bool] = None,
    ) -> "NotifierConfig":
        """
        Apply command-line overrides. None means "keep the current value".
        """
        model_overrides = {
            key: value
            for key, value in (
                ("weights", weights),
                ("confidence", confidence),
                ("device", device),
            )
            if value is not None
        }

        overrides: Dict[str, Any] = {}
        if model_overrides:
            overrides["model_config"] = replace(self.model_config, **model_overrides)
        if video_source is not None:
            overrides["video_source"] = str(video_source)
        if publish_interval is not None:
            overrides["publish_interval"] = publish_interval
        if zone is not None:
            overrides["zone_config"] = zone
        if show_window is not None:
            overrides["show_window"] = show_window

        return replace(self, **overrides) if overrides else self

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NotifierConfig":
        """
        Build configuration from a parsed YAML/JSON document.

        The legacy layout ``{"inputs": [{"video": "..."}]}`` is accepted for
        the video source.
        """
        data = data or {}

        model_config = ModelConfig(**(data.get("model_config") or {}))
        zone_config = ZoneConfig(**(data.get("zone") or {}))
        mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))

        video_source = data.get("video_source")
        if video_source is None:
            inputs = data.get("inputs") or [{}]
            video_source = inputs[0].get("video", "0")

        return cls(
            video_source=str(video_source),
            model_config=model_config,
            zone_config=zone_config,
            mqtt_config=mqtt_config,
            publish_interval=float(data.get("publish_interval", 1.0)),
            show_window=bool(data.get("show_window", True)),
            key_delay_ms=int(data.get("key_delay_ms", 5)),
            frame_poll_timeout=float(data.get("frame_poll_timeout", 0.1)),
            max_consecutive_failures=int(data.get("max_consecutive_failures", 10)),
            join_timeout=float(data.get("join_timeout", 30.0)),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "NotifierConfig":
        """
        Load configuration from a YAML (or JSON) file.

        Example YAML:
            video_source: "./data/videos/worker-zone.mp4"

            model_config:
              weights: "yolov8n.pt"
              confidence: 0.5
              device: "cpu"

            zone:
              x: 100
              y: 100
              width: 300
              height: 200

            publish_interval: 1.0
            show_window: true

            mqtt_config:
              broker: "localhost"
              port: 1883
              status_topic: "machine/zone"
              control_topic: "machine/control"

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid YAML or fails validation
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        return cls.from_dict(data)
