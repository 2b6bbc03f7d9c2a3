#!/usr/bin/env python3
"""
Restricted Zone Notifier - Entry Point
========================================

This script starts the Zonesafe notifier, which:
- Captures video from a camera or file (OpenCV)
- Detects people with an ultralytics YOLO model
- Decides whether anyone is fully inside the restricted zone
- Publishes {"Safe": "true"|"false"} to MQTT every --rate seconds
- Logs inbound control messages

Usage:
    python run_zone_notifier.py --config config/notifier_config.yaml
    python run_zone_notifier.py -i ./data/videos/worker-zone.mp4 -x 100 -y 100 -w 300 -H 200

Architecture:
    - ZoneNotifierService: Capture loop and resource owner (zonesafe_processor)
    - SafetyStatusPublisher: Heartbeat publisher (zonesafe_mqtt)
    - ControlSubscriber: Control channel observer (zonesafe_mqtt)

Lifecycle:
    1. Setup logging (console + file)
    2. Load configuration (YAML → MQTT_* env → CLI flags)
    3. Create publisher and subscriber
    4. Create ZoneNotifierService and load the detector
    5. Run until end of stream, ESC or a signal
    6. Graceful shutdown (workers joined before MQTT and capture are released)

Keys (display window):
    - c: Reselect the restricted zone
    - ESC: Exit

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown

Logs:
    - Console: INFO level
    - File: logs/notifier.log (INFO level)
"""

import argparse
import signal
import sys
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from zonesafe_mqtt import ControlSubscriber, SafetyStatusPublisher, create_logger
from zonesafe_processor.config import NotifierConfig, ZoneConfig
from zonesafe_processor.service import ZoneNotifierService


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging for the notifier.

    Args:
        log_file: Optional path to log file (default: logs/notifier.log)

    Returns:
        Logger instance for the notifier
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

def build_config(args: argparse.Namespace) -> NotifierConfig:
    """
    Resolve configuration: defaults → YAML → MQTT_* env → CLI flags.

    Zone flags replace the configured zone only when at least one is given.
    """
    config = NotifierConfig.from_yaml(args.config) if args.config else NotifierConfig()

    config = replace(config, mqtt_config=config.mqtt_config.with_env())

    zone = None
    zone_flags = (args.pointx, args.pointy, args.width, args.height)
    if any(value is not None for value in zone_flags):
        zone = ZoneConfig(*(value or 0 for value in zone_flags))

    video_source = args.input
    if video_source is None and args.device is not None:
        video_source = str(args.device)

    return config.with_overrides(
        video_source=video_source,
        weights=args.model,
        confidence=args.factor,
        device=args.inference_device,
        publish_interval=args.rate,
        zone=zone,
        show_window=False if args.no_window else None,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class NotifierApp:
    """
    Main application wrapper for ZoneNotifierService.

    Handles:
    - Configuration logging
    - Component initialization (publisher, subscriber)
    - Signal handling (SIGTERM, SIGINT)
    """

    def __init__(self, config: NotifierConfig, log_file: Optional[Path] = None):
        self.config = config
        self.log_file = log_file
        self.logger = logging.getLogger(__name__)

        # Components (initialized in setup())
        self.status_publisher: Optional[SafetyStatusPublisher] = None
        self.control_subscriber: Optional[ControlSubscriber] = None
        self.service: Optional[ZoneNotifierService] = None

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Create structured loggers for MQTT clients
        2. Create status publisher and control subscriber
        3. Create ZoneNotifierService
        4. Load the detector
        """
        mqtt = self.config.mqtt_config

        self.logger.info("=" * 80)
        self.logger.info("🚀 Zonesafe Restricted Zone Notifier - Starting")
        self.logger.info("=" * 80)
        self.logger.info(f"  - Video source: {self.config.video_source}")
        self.logger.info(f"  - Model: {self.config.model_config.weights} "
                         f"(confidence > {self.config.model_config.confidence})")
        self.logger.info(f"  - Zone: {self.config.zone_config}")
        self.logger.info(f"  - Broker: {mqtt.broker}:{mqtt.port}")

        telemetry_logger = create_logger(component="telemetry")
        control_logger = create_logger(component="control")

        self.logger.info("📤 Creating MQTT clients")
        self.status_publisher = SafetyStatusPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=mqtt.status_topic,
            logger=telemetry_logger,
            client_id=mqtt.status_client_id,
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.qos,
        )
        self.control_subscriber = ControlSubscriber(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            control_topic=mqtt.control_topic,
            logger=control_logger,
            client_id=mqtt.control_client_id,
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.qos,
        )
        self.logger.info(f"  - Status topic: {mqtt.status_topic}")
        self.logger.info(f"  - Control topic: {mqtt.control_topic}")

        self.logger.info("🏗️  Creating zone notifier service")
        self.service = ZoneNotifierService(
            config=self.config,
            status_publisher=self.status_publisher,
            control_subscriber=self.control_subscriber,
        )

        self.logger.info("⚙️  Loading person detector")
        self.service.setup()
        self.logger.info("=" * 80)

    def run(self):
        """
        Run the notifier. Blocks until end of stream, ESC or a signal.
        """
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.logger.info("Press ESC (window) or Ctrl+C to stop, 'c' to reselect the zone")
        self.service.run()

        self.logger.info("=" * 80)
        self.logger.info(f"✅ Shutdown complete ({self.service.shutdown.reason})")
        self.logger.info("=" * 80)

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals (SIGTERM, SIGINT).

        Only raises the stop flag; the capture loop unwinds and releases resources.
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.service.stop(f"signal {signal_name}")


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace with parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Zonesafe - Restricted zone notifier (OpenCV + YOLO + MQTT)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with a config file
  python run_zone_notifier.py --config config/notifier_config.yaml

  # Video file, zone at (100,100) size 300x200, heartbeat every 2s
  python run_zone_notifier.py -i ./data/videos/worker-zone.mp4 -x 100 -y 100 -w 300 -H 200 -r 2

  # Headless on camera 1, console only
  python run_zone_notifier.py -d 1 --no-window --no-log-file

Environment:
  MQTT_SERVER (host, host:port or tcp://host:port), MQTT_CLIENT_ID,
  MQTT_USERNAME, MQTT_PASSWORD
        """
    )

    parser.add_argument('--config', type=Path, default=None,
                        help='Path to notifier configuration YAML/JSON file')
    parser.add_argument('-i', '--input', default=None,
                        help='Video file path or stream URL (overrides --device)')
    parser.add_argument('-d', '--device', type=int, default=None,
                        help='Camera index (default: 0)')
    parser.add_argument('-m', '--model', default=None,
                        help='Person detection weights (default: yolov8n.pt)')
    parser.add_argument('-f', '--factor', type=float, default=None,
                        help='Confidence factor; detections must exceed it (default: 0.5)')
    parser.add_argument('-r', '--rate', type=float, default=None,
                        help='Seconds between MQTT heartbeats (default: 1)')
    parser.add_argument('-x', '--pointx', type=int, default=None,
                        help='Zone top-left X (default: 0)')
    parser.add_argument('-y', '--pointy', type=int, default=None,
                        help='Zone top-left Y (default: 0)')
    parser.add_argument('-w', '--width', type=int, default=None,
                        help='Zone width, 0 = frame width (default: 0)')
    parser.add_argument('-H', '--height', type=int, default=None,
                        help='Zone height, 0 = frame height (default: 0)')
    parser.add_argument('--inference-device', default=None,
                        help='Inference device for ultralytics, e.g. cpu, cuda:0')
    parser.add_argument('--no-window', action='store_true',
                        help='Run headless (no display window, no operator keys)')
    parser.add_argument('--log-file', type=Path, default=Path('logs/notifier.log'),
                        help='Path to log file (default: logs/notifier.log)')
    parser.add_argument('--no-log-file', action='store_true',
                        help='Disable file logging (console only)')

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point.

    Workflow:
    1. Parse CLI arguments
    2. Resolve configuration
    3. Create NotifierApp, setup, run (blocks until stopped)
    """
    args = parse_args(argv)

    log_file = None if args.no_log_file else args.log_file

    if args.config and not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(log_file)

    try:
        config = build_config(args)
        app = NotifierApp(config=config, log_file=log_file)
        app.setup()
        app.run()
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
