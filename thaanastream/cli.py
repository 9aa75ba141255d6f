"""ThaanaStream command line.

Usage:
    python -m thaanastream compose [FILE] [--selective] [--layout FILE]
    python -m thaanastream replay LOG.json
    python -m thaanastream markdown TREE.json [--check]

``replay`` runs a recorded keystroke log through the live composer on a
virtual clock. A log is ``{"events": [...]}`` where each event is
``{"key": "d", "t": 0}``, ``{"key": "c", "t": 10, "ctrl": true}`` or
``{"interrupt": "deletion", "t": 20}``.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from thaanastream.config import load_config
from thaanastream.errors import ConfigError, ThaanaStreamError
from thaanastream.events import EventBus
from thaanastream.ime.classify import SymbolClassifier
from thaanastream.ime.composer import PhoneticComposer, compose, compose_selective
from thaanastream.ime.surface import TextSurface
from thaanastream.layouts import LayoutTable
from thaanastream.models import (
    COMPOSITION_COMMIT, COMPOSITION_FLUSH, COMPOSITION_START, InterruptKind,
)
from thaanastream.scheduling import ManualScheduler
from thaanastream.serializer.incremental import IncrementalSerializer
from thaanastream.serializer.markdown import MarkdownSerializer
from thaanastream.serializer.tree import node_from_dict

logger = logging.getLogger("thaanastream.cli")


def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def cmd_compose(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    layout: Any = config.ime.layout
    if args.layout:
        layout = LayoutTable(_read_json(args.layout), name="custom")
    classifier = SymbolClassifier(config.ime.symbol_sets())

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    convert = compose_selective if args.selective else compose
    out = "".join(convert(line, layout, classifier) for line in source.splitlines(keepends=True))
    sys.stdout.write(out)
    return 0


def _check_event(index: int, event: Any) -> Tuple[Optional[InterruptKind], str]:
    """Validate one replay event. Returns (interrupt kind, key)."""
    if not isinstance(event, dict):
        raise ConfigError(f"replay event {index} must be an object")
    if not isinstance(event.get("t", 0), (int, float)):
        raise ConfigError(f"replay event {index}: 't' must be a number")
    if "interrupt" in event:
        try:
            return InterruptKind(event["interrupt"]), ""
        except ValueError:
            raise ConfigError(f"replay event {index}: unknown interrupt {event['interrupt']!r}") from None
    key = event.get("key")
    if not isinstance(key, str) or not key:
        raise ConfigError(f"replay event {index} needs a 'key' or an 'interrupt'")
    return None, key


def replay(log: Dict[str, Any], config_path: Optional[str] = None) -> Dict[str, Any]:
    """Replay a keystroke log. Returns the final text and the emitted events."""
    if not isinstance(log, dict):
        raise ConfigError("replay log must be a JSON object")
    config = load_config(config_path)
    scheduler = ManualScheduler()
    surface = TextSurface()
    bus = EventBus()
    events: List[Dict[str, Any]] = []
    for name in (COMPOSITION_START, COMPOSITION_COMMIT, COMPOSITION_FLUSH):
        bus.on(name, lambda payload, name=name: events.append(
            {"event": name, "t": scheduler.now_ms, **payload}
        ))

    composer = PhoneticComposer(
        surface,
        layout=log.get("layout", config.ime.layout),
        classifier=SymbolClassifier(config.ime.symbol_sets()),
        scheduler=scheduler,
        bus=bus,
        flush_timeout_ms=config.ime.flush_timeout_ms,
        emit_events=config.ime.emit_events,
        enabled=config.ime.enabled,
    )
    for index, event in enumerate(log.get("events", [])):
        kind, key = _check_event(index, event)
        t = float(event.get("t", scheduler.now_ms))
        if t > scheduler.now_ms:
            scheduler.advance(t - scheduler.now_ms)
        if kind is not None:
            surface.interrupt(kind)
        else:
            composer.handle_key(
                key, t, ctrl=bool(event.get("ctrl")), meta=bool(event.get("meta")),
            )
    scheduler.advance(config.ime.flush_timeout_ms)
    composer.destroy()
    return {"text": surface.text, "events": events, "stats": composer.stats()}


def cmd_replay(args: argparse.Namespace) -> int:
    result = replay(_read_json(args.log), args.config)
    json.dump(result, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_markdown(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    root = node_from_dict(_read_json(args.tree))
    markdown = MarkdownSerializer(list_style=config.serializer.list_style)
    serializer = IncrementalSerializer(
        markdown.serialize_block,
        fallback_threshold=config.serializer.fallback_threshold,
        error_fragment=config.serializer.error_fragment,
        strict=config.serializer.strict,
    )
    incremental = serializer.get_incremental(root)
    sys.stdout.write(incremental + "\n")
    if args.check:
        full = serializer.get_full(root)
        if full != incremental:
            logger.error("Incremental and full output differ")
            return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="thaanastream", description="Thaana phonetic input tools")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compose", help="Convert latin phonetic text to Thaana")
    p.add_argument("file", nargs="?", help="Input file (default: stdin)")
    p.add_argument("--selective", action="store_true", help="Leave markdown, URLs and latin prose alone")
    p.add_argument("--layout", help="JSON file with a symbol -> glyph mapping")
    p.set_defaults(func=cmd_compose)

    p = sub.add_parser("replay", help="Replay a keystroke log through the live composer")
    p.add_argument("log", help="JSON keystroke log")
    p.set_defaults(func=cmd_replay)

    p = sub.add_parser("markdown", help="Serialize a JSON document tree")
    p.add_argument("tree", help="JSON tree file")
    p.add_argument("--check", action="store_true", help="Verify incremental output equals full output")
    p.set_defaults(func=cmd_markdown)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (ThaanaStreamError, OSError, json.JSONDecodeError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
