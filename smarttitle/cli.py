#!/usr/bin/env python3
"""
smart-title — session title generator

Usage:
    smart-title init                              Create config and sessions directory
    smart-title status                            Config diagnostics
    smart-title providers                         List authenticated providers
    smart-title select [--model M]                Show which model would be used
    smart-title context <file> [--turns N] [--chars N]
                                                  Show the context sent to the model
    smart-title title <file> [--model M] [--apply]
                                                  Generate a title for a session file
    smart-title idle <session_id> [--times N] [--dir D]
                                                  Deliver idle events to a stored session

Global flags:
    --debug                                       Verbose logging
"""

from __future__ import annotations

import json
import logging
import sys


def _json_out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_init(args):
    from smarttitle.api import init
    result = init()
    for item in result["created"]:
        print(f"  created: {item}")
    for item in result["existing"]:
        print(f"  exists:  {item}")
    print("\nsmart-title initialized.")
    print("Next: set a provider key in config.yaml or export e.g. OPENAI_API_KEY")


def cmd_status(args):
    from smarttitle.api import status
    result = status()
    print(f"  config:    {result['config_path']}"
          f"{'' if result['config_exists'] else ' (missing, defaults in use)'}")
    print(f"  enabled:   {result['enabled']}")
    print(f"  model:     {result['model'] or '(fallback)'}")
    print(f"  threshold: every {result['update_threshold']} idle event(s)")
    print(f"  context:   {result['max_turns']} turns, "
          f"{result['max_chars_per_message']} chars/message")
    print(f"  sessions:  {result['sessions_dir']}")
    if result["providers"]:
        print(f"  providers: {', '.join(result['providers'])}")
    else:
        print("  providers: NONE — set api_keys in config.yaml or export a provider key")


def cmd_providers(args):
    from smarttitle.api import providers
    _json_out(providers())


def cmd_select(args):
    from smarttitle.api import select
    from smarttitle.summarize.selector import NoUsableModelError
    try:
        _json_out(select(model=_get_opt(args, "--model")))
    except NoUsableModelError as e:
        _err(str(e))


def cmd_context(args):
    from smarttitle.api import context
    positional = _positional(args, ("--turns", "--chars"))
    if not positional:
        _err("Usage: smart-title context <file> [--turns N] [--chars N]")
    turns = _get_int_opt(args, "--turns")
    chars = _get_int_opt(args, "--chars")
    result = context(positional[0], max_turns=turns, max_chars=chars)
    if "error" in result:
        _err(result["error"])
    print(f"[{result['turns']} turns]", file=sys.stderr)
    print(result["context"])


def cmd_title(args):
    from smarttitle.api import title
    from smarttitle.summarize.providers import GenerationError
    from smarttitle.summarize.selector import NoUsableModelError
    positional = _positional(args, ("--model",))
    if not positional:
        _err("Usage: smart-title title <file> [--model M] [--apply]")
    try:
        result = title(
            positional[0],
            model=_get_opt(args, "--model"),
            apply="--apply" in args,
        )
    except (NoUsableModelError, GenerationError) as e:
        _err(str(e))
    if "error" in result:
        _err(result["error"])
    _json_out(result)


def cmd_idle(args):
    from smarttitle.api import idle
    positional = _positional(args, ("--times", "--dir"))
    if not positional:
        _err("Usage: smart-title idle <session_id> [--times N] [--dir D]")
    times = _get_int_opt(args, "--times") or 1
    _json_out(idle(positional[0], times=times, sessions_dir=_get_opt(args, "--dir")))


COMMANDS = {
    "init": cmd_init,
    "status": cmd_status,
    "providers": cmd_providers,
    "select": cmd_select,
    "context": cmd_context,
    "title": cmd_title,
    "idle": cmd_idle,
}


def _get_opt(args, flag):
    """Extract value after a flag from args list."""
    if flag in args:
        idx = args.index(flag)
        if idx + 1 < len(args):
            return args[idx + 1]
    return None


def _get_int_opt(args, flag):
    value = _get_opt(args, flag)
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number < 1:
        _err(f"{flag} expects a positive integer, got {value!r}")
    return number


def _positional(args, value_flags):
    """Arguments that are neither flags nor values of value_flags."""
    result = []
    skip = False
    for arg in args:
        if skip:
            skip = False
            continue
        if arg in value_flags:
            skip = True
            continue
        if arg.startswith("-"):
            continue
        result.append(arg)
    return result


def _err(msg):
    print(msg, file=sys.stderr)
    sys.exit(1)


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # litellm is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def main():
    args = [a for a in sys.argv[1:] if a != "--debug"]
    if not args or args[0] in ("-h", "--help", "help"):
        print(__doc__.strip())
        sys.exit(0)

    cmd = args[0]
    handler = COMMANDS.get(cmd)
    if not handler:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        print(f"Available: {', '.join(COMMANDS.keys())}", file=sys.stderr)
        sys.exit(1)

    from smarttitle.core.config import Config
    _setup_logging("--debug" in sys.argv or Config.load().debug)

    handler(args[1:])


if __name__ == "__main__":
    main()
