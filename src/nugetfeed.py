"""nugetfeed - query NuGet package sources and compute packages.config updates.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import ExitCodes
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from manifest import ManifestError, PackagesConfig
from registry.nuget import create_source, load_source_configs
from resolver import find_package, resolve_updates
from versioning.models import ManifestEntry, PackageIdentifier

logger = logging.getLogger(__name__)


def _record_dict(package):
    source = package.source
    return {
        "id": package.id,
        "version": package.version,
        "title": package.title,
        "description": package.description,
        "licenseUrl": package.license_url,
        "downloadUrl": package.download_url,
        "source": source.name if source is not None else None,
        "dependencies": [{"id": d.id, "version": d.version} for d in package.dependencies],
    }


def print_packages(packages, as_json=False):
    """Write packages to stdout as ``id version`` lines or a JSON array."""
    if as_json:
        print(json.dumps([_record_dict(p) for p in packages], indent=2))
        return
    for package in packages:
        print(f"{package.id} {package.version}")


def build_sources(config_path=None):
    """Instantiate every configured source, in priority order."""
    return [create_source(config) for config in load_source_configs(config_path)]


def _load_manifest(path):
    try:
        return PackagesConfig.load(path)
    except (ManifestError, OSError) as exc:
        logging.error("%s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run_updates(args, sources):
    manifest = _load_manifest(args.MANIFEST)
    updates = resolve_updates(manifest, sources, args.INCLUDE_PRERELEASE, args.INCLUDE_ALL_VERSIONS)
    print_packages(updates, args.JSON)


def run_search(args, sources):
    results = []
    for source in sources:
        if source.enabled:
            results.extend(source.search(
                args.TERM, args.INCLUDE_ALL_VERSIONS, args.INCLUDE_PRERELEASE, args.TOP, args.SKIP
            ))
    print_packages(results, args.JSON)


def run_find(args, sources):
    if args.VERSION:
        package = find_package(PackageIdentifier(args.ID, args.VERSION), sources)
        print_packages([package] if package is not None else [], args.JSON)
        return
    for source in sources:
        if not source.enabled:
            continue
        packages = source.find_by_range(args.ID, args.RANGE, args.INCLUDE_PRERELEASE)
        if packages:
            print_packages(packages, args.JSON)
            return
    print_packages([], args.JSON)


def run_add(args):
    manifest = _load_manifest(args.MANIFEST)
    manifest.add(ManifestEntry(id=args.ID, version=args.VERSION))
    manifest.save(args.MANIFEST)


def run_remove(args):
    manifest = _load_manifest(args.MANIFEST)
    if not manifest.remove(args.ID):
        logging.warning("%s is not listed in %s", args.ID, args.MANIFEST)
    manifest.save(args.MANIFEST)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    if args.COMMAND == "add":
        run_add(args)
    elif args.COMMAND == "remove":
        run_remove(args)
    else:
        sources = build_sources(args.CONFIG)
        handlers = {"updates": run_updates, "search": run_search, "find": run_find}
        handlers[args.COMMAND](args, sources)

    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
