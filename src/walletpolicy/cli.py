#!/usr/bin/env python3
"""
walletpolicy CLI: compile wallet spending policies into templates

Quick start
  Single key on a hardware device:
    python -m walletpolicy.cli singlesig --taproot --require-hardware
  3-signer cold storage, recoverable by any signer after 5 years:
    python -m walletpolicy.cli hodling --sigs 3 --hardware require
  5-signer multisig with a graduated decay schedule (frozen clock):
    python -m walletpolicy.cli multisig --sigs 5 --hardware deny --now 2024-01-01T00:00:00+00:00 --json

Notes
- Templates carry no keys; signers are attached when the descriptor is built.
- Timelocks are absolute: re-running a command later shifts every tier.
"""
import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from .bip43 import MAX_ACCOUNT
from .network import Network
from .policy import Requirement
from .template import WalletTemplate
from .verify import verify_template

logger = logging.getLogger(__name__)


def _parse_now(value: str) -> datetime:
    try:
        now = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value!r}") from exc
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def _parse_account(value: str) -> int:
    try:
        account = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from exc
    if account < 0 or account > MAX_ACCOUNT:
        raise argparse.ArgumentTypeError(f"account must be in range 0..{MAX_ACCOUNT}")
    return account


def _emit(template: WalletTemplate, args: argparse.Namespace) -> None:
    res = verify_template(template)
    if args.json:
        out = template.to_dict(args.account)
        out['schedule_ok'] = res['ok']
        print(json.dumps(out))
    else:
        for line in template.describe(args.account):
            print(line)
        if res['ok']:
            print('[OK] decay schedule')
        else:
            print('[FAIL] decay schedule')
            print('reason        =', res['reason'])


def cmd_singlesig(args: argparse.Namespace) -> None:
    template = WalletTemplate.singlesig(args.taproot, args.network, args.require_hardware)
    _emit(template, args)


def cmd_hodling(args: argparse.Namespace) -> None:
    template = WalletTemplate.hodling(
        args.network, args.sigs, args.hardware, args.watch_only, now=args.now,
    )
    _emit(template, args)


def cmd_multisig(args: argparse.Namespace) -> None:
    template = WalletTemplate.multisig(
        args.network, args.sigs, args.hardware, args.watch_only, now=args.now,
    )
    _emit(template, args)


def main():
    epilog = (
        "Decay schedules:\n"
        "  hodling  N        all signers now; any signer after 5 years\n"
        "  multisig 2        all signers now; any signer after 5 years\n"
        "  multisig 3        2 signers now; any signer after 5 years\n"
        "  multisig N>3      N-1 signers now; majority after 3 years; any signer after 5 years\n"
        "Notes: timelocks are computed from --now (default: current UTC time)."
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--network', type=Network.parse, default=Network.MAINNET,
                        help='mainnet|testnet|signet (default: mainnet)')
    common.add_argument('--account', type=_parse_account, default=0, help='account index for the derivation path')
    common.add_argument('--json', action='store_true', help='print JSON output')
    common.add_argument('--verbose', action='store_true', help='debug logging on stderr')

    ap = argparse.ArgumentParser(description="walletpolicy CLI (compile wallet templates)", epilog=epilog,
                                 formatter_class=argparse.RawDescriptionHelpFormatter)
    sub = ap.add_subparsers(dest='cmd', required=True)

    ap_s = sub.add_parser('singlesig', parents=[common], help='single-key wallet template')
    ap_s.add_argument('--taproot', action='store_true', help='BIP-86 taproot instead of BIP-84 segwit v0')
    ap_s.add_argument('--require-hardware', action='store_true',
                      help='key must live on a hardware device (otherwise watch-only)')
    ap_s.set_defaults(func=cmd_singlesig)

    ap_h = sub.add_parser('hodling', parents=[common], help='long-term holding multisig template')
    ap_h.add_argument('--sigs', required=True, type=int, help='number of signers (>= 3)')
    ap_h.add_argument('--now', type=_parse_now, help='ISO-8601 timestamp used as the current time')
    ap_h.add_argument('--hardware', type=Requirement.parse, default=Requirement.ALLOW,
                      help='allow|require|deny hardware signers')
    ap_h.add_argument('--watch-only', type=Requirement.parse, default=Requirement.ALLOW,
                      help='allow|require|deny watch-only signers')
    ap_h.set_defaults(func=cmd_hodling)

    ap_m = sub.add_parser('multisig', parents=[common], help='multisig template with decay schedule')
    ap_m.add_argument('--sigs', type=int, help='signatures required (> 1); omit to decide at descriptor time')
    ap_m.add_argument('--now', type=_parse_now, help='ISO-8601 timestamp used as the current time')
    ap_m.add_argument('--hardware', type=Requirement.parse, default=Requirement.ALLOW,
                      help='allow|require|deny hardware signers')
    ap_m.add_argument('--watch-only', type=Requirement.parse, default=Requirement.ALLOW,
                      help='allow|require|deny watch-only signers')
    ap_m.set_defaults(func=cmd_multisig)

    args = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr,
                        format='%(levelname)s %(name)s: %(message)s')
    try:
        args.func(args)
    except ValueError as e:
        logger.debug('rejected parameters: %r', getattr(e, 'value', None))
        print(f'ERROR: {e}', file=sys.stderr)
        sys.exit(2)

if __name__ == '__main__':
    main()
