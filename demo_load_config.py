#!/usr/bin/env python3
"""
Demo: Load the example service configuration from a YAML file and the
environment, then print the result.

Usage:
    APP_PORT=9090 APP_TIMEOUT=250ms python demo_load_config.py [config.yaml]
"""

import logging
import sys
from dataclasses import asdict

from confbind import YAML_DECODER, load_from_env, load_from_file
from confbind.examples import build_example_config


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    cfg = build_example_config()
    if len(sys.argv) > 1:
        load_from_file(cfg, sys.argv[1], YAML_DECODER)
    load_from_env(cfg)

    print("=" * 60)
    print(f"CONFIGURATION (source: {cfg.config_mode})")
    print("=" * 60)
    for name, value in asdict(cfg).items():
        print(f"  {name:<12} {value!r}")


if __name__ == "__main__":
    main()
