#!/usr/bin/env python3
"""
Eos Bridge Launcher

Runs the MIDI-to-Eos fader bridge, or performs one-off profile and device
housekeeping from the command line.
"""

import argparse
import logging
import sys
from pathlib import Path

from eosbridge.controller.bridge import EosBridge

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MIDI fader bridge for ETC Eos")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level",
    )
    parser.add_argument(
        "--simulation",
        action="store_true",
        help="Run against a simulated console (no network traffic)",
    )
    parser.add_argument(
        "--app-dir",
        type=Path,
        default=None,
        help="Directory holding config.json and faderProfiles/",
    )
    parser.add_argument(
        "--list-devices", action="store_true", help="List MIDI input devices and exit"
    )
    parser.add_argument(
        "--list-profiles", action="store_true", help="List fader profiles and exit"
    )
    parser.add_argument("--profile", help="Fader profile id to load")
    parser.add_argument("--page", type=int, help="Page to activate after loading")
    parser.add_argument(
        "--create-profile",
        metavar="NAME",
        help="Create and save a new fader profile, then exit",
    )
    parser.add_argument("--groups", type=int, default=1, help="Groups for --create-profile")
    parser.add_argument("--faders", type=int, default=10, help="Faders for --create-profile")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s][%(name)s] %(levelname)s %(message)s",
    )

    if args.simulation:
        logger.info("🔧 SIMULATION MODE ENABLED - No Eos console required")

    bridge = EosBridge.create(app_dir=args.app_dir, simulation=args.simulation)

    if args.list_devices:
        for name in bridge.get_available_midi_devices():
            print(name)
        return 0

    if args.list_profiles or args.create_profile:
        bridge.store.initialize()
        if args.create_profile:
            try:
                profile = bridge.store.create_fader_profile(
                    args.create_profile, args.groups, args.faders
                )
            except ValueError as e:
                logger.error(f"Cannot create profile: {e}")
                return 1
            bridge.store.save_profile()
            print(profile.id)
        else:
            for metadata in bridge.store.get_profile_metadata():
                print(f"{metadata.id}\t{metadata.name}\t{metadata.filename}")
        return 0

    if args.profile:
        bridge.config.set_fader_profile_id(args.profile)

    bridge.initialize()
    if args.page is not None:
        bridge.set_page(args.page)

    bridge.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
