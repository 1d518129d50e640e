"""
nameid CLI - resolve names, verify profile tokens, build zone files.

Commands:
  nameid lookup         - Resolve a name to its verified profile
  nameid verify-token   - Verify a profile token against a public key or address
  nameid zonefile       - Render a zone file pointing a name at a token file URL
  nameid did parse      - Split a DID into type and identifier
  nameid did from-address / from-key
                        - Build a DID from an address or public key
  nameid keygen         - Generate a private key with its public key and address
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys


def cmd_lookup(args: argparse.Namespace) -> None:
    """Resolve a name and print its profile JSON."""
    from nameid.errors import NameIDError
    from nameid.profiles.lookup import lookup_profile

    try:
        profile = asyncio.run(lookup_profile(args.name, core_api_url=args.core_api_url))
    except NameIDError as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    if profile is None:
        print(f"FAIL: {args.name} not found", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(profile, indent=2))


def cmd_verify_token(args: argparse.Namespace) -> None:
    """Verify a profile token and print its claim."""
    from nameid.errors import NameIDError
    from nameid.profiles.tokens import verify_profile_token

    token = args.token
    if token == "-":
        token = sys.stdin.read().strip()

    try:
        decoded = verify_profile_token(token, args.key_or_address)
    except NameIDError as e:
        print(f"FAIL: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"OK: token verified against {args.key_or_address}")
    print(json.dumps(decoded["payload"]["claim"], indent=2))


def cmd_zonefile(args: argparse.Namespace) -> None:
    """Print the zone file for a name and token file URL."""
    from nameid.errors import InvalidParameterError
    from nameid.zonefile import NameZoneFile

    try:
        zone_file = NameZoneFile(args.name, args.url)
    except InvalidParameterError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.stdout.write(zone_file.to_string())


def cmd_did_parse(args: argparse.Namespace) -> None:
    from nameid.did import DecentralizedID
    from nameid.errors import MalformedIdentifierError

    try:
        did = DecentralizedID.parse(args.did)
    except MalformedIdentifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"type:       {did.did_type}")
    print(f"identifier: {did.identifier}")


def cmd_did_from_address(args: argparse.Namespace) -> None:
    from nameid.did import DecentralizedID
    from nameid.errors import MalformedIdentifierError

    try:
        did = DecentralizedID.from_address(args.address)
    except MalformedIdentifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(did)


def cmd_did_from_key(args: argparse.Namespace) -> None:
    from nameid.did import DecentralizedID
    from nameid.errors import MalformedIdentifierError

    try:
        did = DecentralizedID.from_public_key(args.public_key)
    except MalformedIdentifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(did)


def cmd_keygen(args: argparse.Namespace) -> None:
    """Generate a private key. The key is printed; keep it secret."""
    from nameid.keys import derive_public_key, encode_private_key, make_ec_private_key, public_key_to_address

    secret = bytes.fromhex(make_ec_private_key())
    private_key = encode_private_key(secret, compressed=not args.uncompressed)
    public_key = derive_public_key(private_key)
    print(f"private_key: {private_key}")
    print(f"public_key:  {public_key}")
    print(f"address:     {public_key_to_address(public_key)}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="nameid",
        description="Decentralized identity client: names, profiles and DIDs.",
    )
    from nameid import __version__
    from nameid.config import configure_logging, load_settings

    parser.add_argument("--version", action="version", version=f"nameid {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    sub = parser.add_subparsers(dest="command")

    # lookup
    p_lookup = sub.add_parser("lookup", help="Resolve a name to its verified profile")
    p_lookup.add_argument("name", help="Fully qualified name, e.g. alice.id")
    p_lookup.add_argument("--core-api-url", help="Core API URL (or set NAMEID_CORE_API_URL)")

    # verify-token
    p_vt = sub.add_parser("verify-token", help="Verify a profile token")
    p_vt.add_argument("token", help="Compact token, or - to read from stdin")
    p_vt.add_argument("key_or_address", help="Expected issuer public key or address")

    # zonefile
    p_zf = sub.add_parser("zonefile", help="Render a profile zone file")
    p_zf.add_argument("name", help="Name for $ORIGIN")
    p_zf.add_argument("url", help="Token file URL")

    # did (with subcommands)
    p_did = sub.add_parser("did", help="Decentralized identifiers")
    did_sub = p_did.add_subparsers(dest="did_command")
    p_dp = did_sub.add_parser("parse", help="Parse a DID")
    p_dp.add_argument("did")
    p_da = did_sub.add_parser("from-address", help="DID for an address")
    p_da.add_argument("address")
    p_dk = did_sub.add_parser("from-key", help="DID for a public key")
    p_dk.add_argument("public_key")

    # keygen
    p_kg = sub.add_parser("keygen", help="Generate a private key")
    p_kg.add_argument("--uncompressed", action="store_true", help="Use the uncompressed key convention")

    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging("DEBUG")
    else:
        configure_logging(load_settings().log_level)

    if not args.command:
        print("nameid - decentralized identity client")
        print()
        print("Usage:")
        print("  nameid lookup alice.id [--core-api-url https://...]")
        print("  nameid verify-token <token> <public-key-or-address>")
        print("  nameid zonefile alice.id https://hub.example.com/ADDR/profile.json")
        print("  nameid did {parse|from-address|from-key} ...")
        print("  nameid keygen [--uncompressed]")
        print()
        print("Run 'nameid <command> --help' for details on any command.")
        sys.exit(0)

    if args.command == "did":
        did_commands = {
            "parse": cmd_did_parse,
            "from-address": cmd_did_from_address,
            "from-key": cmd_did_from_key,
        }
        dc = getattr(args, "did_command", None)
        if not dc:
            print("Usage: nameid did {parse|from-address|from-key}")
            sys.exit(0)
        did_commands[dc](args)
        return

    commands = {
        "lookup": cmd_lookup,
        "verify-token": cmd_verify_token,
        "zonefile": cmd_zonefile,
        "keygen": cmd_keygen,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
