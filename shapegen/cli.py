"""CLI entrypoints for shapegen commands."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from .codegen import Codegen
from .config import SKIP_CHOICES, ConfigError, ProjectConfig, load_config
from .ledger import LedgerError
from .loader import ModelLoadError
from .logging import configure_logging
from .plugins import PluginError

_KNOWN_ERRORS = (ConfigError, LedgerError, ModelLoadError, PluginError, ValueError, OSError)


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _add_model_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "specs",
        nargs="*",
        help="JSON AST model files or directories (defaults to the config file's specs).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to shapegen.yml or the directory holding it (defaults to current directory).",
    )
    parser.add_argument(
        "--dependency",
        dest="dependencies",
        action="append",
        default=None,
        help="Dependency coordinate to resolve model archives from (repeatable).",
    )
    parser.add_argument(
        "--repository",
        dest="repositories",
        action="append",
        default=None,
        help="Repository used by the dependency resolver (repeatable).",
    )
    parser.add_argument(
        "--transformer",
        dest="transformers",
        action="append",
        default=None,
        help="Model transformer to apply after loading (repeatable).",
    )
    parser.add_argument(
        "--local-jar",
        dest="local_jars",
        action="append",
        default=None,
        help="Local model archive to load (repeatable).",
    )
    parser.add_argument(
        "--resolver",
        default=None,
        help="Entry point name of the dependency resolver plugin.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shapegen",
        description="Generate sources and resources from shape models.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate sources and resources for eligible namespaces.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_log_file_option(generate_parser, suppress_default=True)
    _add_model_options(generate_parser)
    generate_parser.add_argument("--output", default=None, help="Directory for generated sources.")
    generate_parser.add_argument(
        "--resource-output", default=None, help="Directory for generated resources."
    )
    generate_parser.add_argument(
        "--allowed-ns",
        default=None,
        help="Comma separated namespaces to generate; disables the default denylist.",
    )
    generate_parser.add_argument(
        "--excluded-ns",
        default=None,
        help="Comma separated namespaces never to generate.",
    )
    generate_parser.add_argument(
        "--skip",
        action="append",
        choices=SKIP_CHOICES,
        default=None,
        help="Pipeline to skip (repeatable).",
    )
    generate_parser.add_argument(
        "--discover-models",
        action="store_true",
        default=None,
        help="Also load models advertised by archives and directories on sys.path.",
    )
    generate_parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Render namespaces on a thread pool of this size.",
    )
    generate_parser.add_argument("--renderer", default=None, help="Source renderer entry point name.")
    generate_parser.add_argument("--openapi", default=None, help="API-description converter entry point name.")
    generate_parser.add_argument("--proto", default=None, help="Binary-schema compiler entry point name.")

    dump_parser = subparsers.add_parser(
        "dump-model",
        help="Print the loaded model as JSON with mixins flattened.",
    )
    _add_verbose_option(dump_parser, suppress_default=True)
    _add_log_file_option(dump_parser, suppress_default=True)
    _add_model_options(dump_parser)

    return parser


def _apply_overrides(config: ProjectConfig, args: argparse.Namespace) -> ProjectConfig:
    codegen = config.codegen
    overrides: dict[str, object] = {}
    if args.specs:
        overrides["specs"] = tuple(Path(spec) for spec in args.specs)
    for name in ("dependencies", "repositories", "transformers"):
        value = getattr(args, name)
        if value:
            overrides[name] = tuple(value)
    if args.local_jars:
        overrides["local_jars"] = tuple(Path(jar) for jar in args.local_jars)

    if args.command == "generate":
        if args.output:
            overrides["output"] = Path(args.output)
        if args.resource_output:
            overrides["resource_output"] = Path(args.resource_output)
        if args.allowed_ns is not None:
            overrides["allowed_namespaces"] = _split_namespaces(args.allowed_ns)
        if args.excluded_ns is not None:
            overrides["excluded_namespaces"] = _split_namespaces(args.excluded_ns)
        for target in args.skip or ():
            overrides[f"skip_{target}"] = True
        if args.discover_models:
            overrides["discover_models"] = True
        if args.max_workers is not None:
            if args.max_workers < 1:
                raise ConfigError("--max-workers must be a positive integer")
            overrides["max_workers"] = args.max_workers
        for name in ("renderer", "openapi", "proto"):
            value = getattr(args, name)
            if value:
                setattr(config.plugins, name, value)
    if args.resolver:
        config.plugins.resolver = args.resolver

    config.codegen = replace(codegen, **overrides)
    return config


def _split_namespaces(value: str) -> frozenset[str]:
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for shapegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
        config = _apply_overrides(config, args)
        if args.command == "generate":
            codegen = Codegen.from_config(config)
            result = codegen.generate(config.codegen)
            written = codegen.write(result)
            print(
                f"Generated {len(result.sources)} sources and {len(result.resources)} resources "
                f"({len(written)} files written)"
            )
        elif args.command == "dump-model":
            codegen = Codegen.for_dump_model(config)
            print(codegen.dump_model(config.dump_model_args()))
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except _KNOWN_ERRORS as exc:
        parser.exit(1, f"shapegen {args.command} failed: {exc}\nRun with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])
