#!/usr/bin/env python3
"""
Initialize the carrier tendering engine.

This script checks the project by:
- Verifying the Python version
- Loading the optional .env file
- Validating config/config.yaml (sections, carriers, pools)
- Checking that the pools only reference known carriers
- Checking that required packages import
"""

import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def check_python_version() -> bool:
    """Verify Python version is 3.10 or higher."""
    if sys.version_info < (3, 10):
        print(f"❌ Python 3.10+ required. Current version: {sys.version}")
        return False
    print(f"✅ Python version: {sys.version_info.major}.{sys.version_info.minor}")
    return True


def check_env_file() -> bool:
    """Load .env if present; every variable is optional."""
    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("⚠️  .env file not found, using defaults")
        print("   Optional: cp .env.example .env")
        return True

    load_dotenv(env_path)
    print("✅ .env file loaded")
    webhook = os.getenv("AWARD_WEBHOOK_URL")
    if webhook:
        print(f"✅ Award events go to {webhook}")
    else:
        print("⚠️  AWARD_WEBHOOK_URL not set, award events will only be logged")
    return True


def config_dir() -> Path:
    override = os.getenv("TENDERING_CONFIG_DIR")
    return Path(override) if override else PROJECT_ROOT / "config"


def check_config_file() -> bool:
    """Validate config.yaml exists and is valid YAML."""
    path = config_dir() / "config.yaml"
    if not path.exists():
        print(f"❌ Main configuration not found: {path}")
        return False

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        print(f"❌ Error parsing config.yaml: {e}")
        return False

    if not config:
        print("❌ config.yaml is empty")
        return False

    missing = [key for key in ("carriers", "carrier_pools") if not config.get(key)]
    if missing:
        print(f"❌ config.yaml has no {', '.join(missing)}")
        return False

    print("✅ config.yaml is valid YAML")
    return True


def check_carrier_pools() -> bool:
    """Parse carriers and pools through the engine's config layer."""
    from pydantic import ValidationError

    from tendering.core.config import ConfigManager

    manager = ConfigManager(config_dir=config_dir())
    try:
        profiles = manager.get_carrier_profiles()
        pools = manager.get_carrier_pools()
        manager.get_scoring_config()
        manager.get_tendering_config()
        manager.get_notification_config()
    except (ValidationError, ValueError) as e:
        print(f"❌ Invalid configuration: {e}")
        return False

    unknown = sorted(
        {carrier_id for pool in pools for carrier_id in pool.carrier_ids} - set(profiles)
    )
    if unknown:
        print(f"❌ Pools reference unknown carriers: {', '.join(unknown)}")
        return False

    auto = sum(1 for pool in pools if pool.auto_tender)
    print(f"✅ {len(profiles)} carriers, {len(pools)} pools ({auto} auto-tender)")
    return True


def test_imports() -> bool:
    """Test that critical packages can be imported."""
    required_packages = [
        "pydantic",
        "pydantic_settings",
        "structlog",
        "requests",
        "yaml",
        "dotenv",
    ]

    missing = []
    for package in required_packages:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    if missing:
        print(f"❌ Missing packages: {', '.join(missing)}")
        print("   Run: pip install -e .[test]")
        return False

    print("✅ All required packages installed")
    return True


def display_next_steps():
    """Show user what to do next."""
    print("\n" + "=" * 60)
    print("🎉 Project initialization complete!")
    print("=" * 60)
    print("\nNext steps:")
    print("\n1. Review carriers and pools in config/config.yaml")
    print("2. Run the tests:")
    print("   pytest")
    print("\n3. Try the example tender:")
    print("   python -m tendering.engine.lifecycle")
    print("\n" + "=" * 60)


def main():
    """Run all initialization checks."""
    print("=" * 60)
    print("Carrier Tendering Engine - Initialization")
    print("=" * 60)
    print()

    checks = [
        ("Python version", check_python_version),
        (".env file", check_env_file),
        ("Package imports", test_imports),
        ("Configuration file", check_config_file),
        ("Carrier pools", check_carrier_pools),
    ]

    passed = 0
    failed = 0

    for name, check_func in checks:
        print(f"\nChecking {name}...")
        if check_func():
            passed += 1
        else:
            failed += 1

    print("\n" + "=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    if failed == 0:
        display_next_steps()
        return 0
    else:
        print("\n❌ Some checks failed. Please fix the issues above.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
