"""CTIM CLI.

This is the stable CLI entrypoint (console-script: ``ctim``).

UX policy:
  - ``encode`` / ``decode`` / ``check`` mirror the codec operations.
  - Networks can be given by name through a registry (``--networks``).
  - ``--json`` gives machine-readable output on every subcommand.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ctim.core.codec import CtimInt, CtimText, format_ctim, pack, unpack
from ctim.errors import CtimError, UsageError
from ctim.network_spec import (
    BUILTIN_NETWORKS,
    NetworkSpecError,
    NetworkSpecV1,
    load_network_spec,
)

RESULT_SCHEMA = "ctim.result.v1"


def _pkg_version() -> str:
    try:
        from importlib.metadata import PackageNotFoundError, version

        try:
            return version("ctim")
        except PackageNotFoundError:
            # script invoked from source, or metadata missing
            return "0+unknown"
    except Exception:
        return "0+unknown"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")
    p.add_argument("--json", action="store_true", help="Machine-readable JSON output")


def _add_networks_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--networks",
        default=None,
        help="Network registry JSON (@file.json or inline JSON). Default: builtin registry.",
    )


def _parse_uint(label: str, s: str) -> int:
    try:
        return int(s.strip(), 0)
    except ValueError:
        raise UsageError(f"{label}: not an integer literal: {s!r}") from None


def _registry(networks_arg: str | None) -> NetworkSpecV1:
    return load_network_spec(networks_arg) if networks_arg else BUILTIN_NETWORKS


def _emit(obj: dict[str, Any]) -> None:
    print(json.dumps({"schema": RESULT_SCHEMA, **obj}, ensure_ascii=False, separators=(",", ":")))


def _emit_error(e: Exception, exit_code: int) -> None:
    """Emit stable JSON on stderr for errors when --json is used."""
    print(
        json.dumps(
            {
                "schema": RESULT_SCHEMA,
                "ok": False,
                "error": getattr(e, "name", type(e).__name__),
                "message": str(e),
                "exit_code": int(exit_code),
            },
            ensure_ascii=False,
            separators=(",", ":"),
        ),
        file=sys.stderr,
    )


def _fields_obj(value: int, reg: NetworkSpecV1) -> dict[str, Any]:
    f = unpack(CtimInt(value))
    return {
        "ok": True,
        "ctim": format_ctim(value),
        "value": value,
        "ledger_index": f.ledger_index,
        "txn_index": f.txn_index,
        "network_id": f.network_id,
        "network": reg.name_of(f.network_id),
    }


def _network_id(reg: NetworkSpecV1, token: str | None) -> int:
    """Numeric literals go straight to pack() for the range check; names go to the registry."""
    if token is None:
        return reg.resolve(None)
    try:
        return int(token.strip(), 0)
    except ValueError:
        return reg.resolve(token)


def _cmd_encode(ns: argparse.Namespace) -> int:
    reg = _registry(ns.networks)
    value = pack(
        _parse_uint("ledger_index", ns.ledger_index),
        _parse_uint("txn_index", ns.txn_index),
        _network_id(reg, ns.network),
    )
    if ns.json:
        _emit(_fields_obj(value, reg))
    elif ns.int:
        print(value)
    else:
        print(format_ctim(value))
    return 0


def _decode_arg(ns: argparse.Namespace) -> CtimText | CtimInt:
    if ns.int:
        return CtimInt(_parse_uint("ctim", ns.ctim))
    return CtimText(ns.ctim)


def _cmd_decode(ns: argparse.Namespace) -> int:
    reg = _registry(ns.networks)
    f = unpack(_decode_arg(ns))
    if ns.json:
        _emit(_fields_obj(f.value(), reg))
    else:
        print(f"{f.ledger_index} {f.txn_index} {f.network_id}")
    return 0


def _cmd_check(ns: argparse.Namespace) -> int:
    # unpack raises the typed error; main() reports it
    unpack(_decode_arg(ns))
    if ns.json:
        _emit({"ok": True})
    else:
        print("OK")
    return 0


def _cmd_networks_validate(ns: argparse.Namespace) -> int:
    # load is the validation
    reg = load_network_spec(str(ns.spec))
    if ns.json:
        _emit({"ok": True, "name": reg.name, "networks": reg.networks, "default": reg.default})
    else:
        print("OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ctim",
        description="CTIM: Concise Transaction Identifier Marker codec",
    )
    p.add_argument("--version", action="version", version=f"ctim {_pkg_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_e = sub.add_parser("encode", help="Encode (ledger, txn, network) as a CTIM")
    p_e.add_argument("ledger_index", help="Ledger index (decimal or 0x literal, max 0xFFFFFFF)")
    p_e.add_argument("txn_index", help="Transaction index (max 0xFFFF)")
    p_e.add_argument(
        "network",
        nargs="?",
        default=None,
        help="Network id or registry name (default: registry default)",
    )
    p_e.add_argument("--int", action="store_true", help="Print the 64-bit integer instead of hex")
    _add_networks_arg(p_e)
    _add_common_args(p_e)

    p_d = sub.add_parser("decode", help="Decode a CTIM into ledger, txn, network")
    p_d.add_argument("ctim", help="16 uppercase hex characters (or integer literal with --int)")
    p_d.add_argument("--int", action="store_true", help="Treat CTIM as an integer literal")
    _add_networks_arg(p_d)
    _add_common_args(p_d)

    p_c = sub.add_parser("check", help="Validate a CTIM without decoding it")
    p_c.add_argument("ctim")
    p_c.add_argument("--int", action="store_true", help="Treat CTIM as an integer literal")
    _add_common_args(p_c)

    p_n = sub.add_parser("networks-validate", help="Validate a network registry (v1)")
    p_n.add_argument("spec", help="Network registry JSON (@file.json or inline JSON)")
    _add_common_args(p_n)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "encode":
            return _cmd_encode(ns)
        if ns.cmd == "decode":
            return _cmd_decode(ns)
        if ns.cmd == "check":
            return _cmd_check(ns)
        if ns.cmd == "networks-validate":
            return _cmd_networks_validate(ns)
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except NetworkSpecError as e:
        # Treat as usage/config error.
        if getattr(ns, "debug", False):
            raise
        return _fail(ns, e, 2, f"[ctim] {e}")
    except CtimError as e:
        if getattr(ns, "debug", False):
            raise
        return _fail(ns, e, int(getattr(e, "exit_code", 10) or 10), f"[ctim] {e.name}: {e}")
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        return _fail(ns, e, 10, f"[ctim] error: {e}")


def _fail(ns: argparse.Namespace, e: Exception, code: int, text: str) -> int:
    if getattr(ns, "json", False):
        _emit_error(e, code)
    else:
        print(text, file=sys.stderr)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
