import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from savekit.core.config import PersistenceConfig
from savekit.core.log import configure_logging
from features.registry import default_registry


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Load and migrate every feature store.")
    parser.add_argument("save_root", nargs="?", default="game/saves")
    parser.add_argument("--backend", choices=PersistenceConfig.BACKENDS, default="file")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    config = PersistenceConfig(
        save_root=args.save_root,
        backend=args.backend,
        log_level=logging.DEBUG if args.verbose else logging.INFO,
    )
    configure_logging(config.log_level)
    logger = logging.getLogger("savekit.verify")

    registry = default_registry(config)
    registry.boot_all()

    ok = True
    for name in registry.names:
        if name in registry.failures:
            logger.error(f"{name}: FAILED ({registry.failures[name]})")
            ok = False
            continue
        store = registry.store(name)
        if registry.is_degraded(name):
            logger.error(f"{name}: DEGRADED, record could not be loaded")
            ok = False
            continue
        logger.info(
            f"{name}: schema v{store.schema_version}, "
            + ", ".join(
                f"{c}={len(store.get_collection(c))}" for c in store.descriptor.collections
            )
        )

    if ok:
        logger.info("All feature stores verified.")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
