"""
Bloom Agent Auth Command Line Interface.

Provides commands for creating a local test wallet, issuing agent tokens and
verifying them.
"""

import argparse
import asyncio
import json
import os
import sys
import logging
from typing import List, Optional

from bloomauth.claims import new_claims
from bloomauth.config import AuthConfig, dashboard_url, print_config
from bloomauth.errors import AgentAuthError, ConfigurationError
from bloomauth.signer import AgentTokenIssuer
from bloomauth.verifier import Verifier
from bloomauth.wallet import LocalWalletSigner, generate_wallet


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Generate a throwaway local agent wallet."""
    wallet = generate_wallet()

    if args.env:
        print(f"export BLOOM_AGENT_PRIVATE_KEY='{wallet.private_key}'")
        print(f"# Agent address: {wallet.address}", file=sys.stderr)
    else:
        print("🔑 NEW LOCAL AGENT WALLET (development only)\n")
        print(f"Address: {wallet.address}")
        print("\n--- PRIVATE KEY (Keep Secret / Set as BLOOM_AGENT_PRIVATE_KEY) ---")
        print(wallet.private_key)

    return 0


def cmd_issue(args: argparse.Namespace) -> int:
    """Sign claims with the local wallet and print the agent token."""
    private_key = args.key or os.environ.get('BLOOM_AGENT_PRIVATE_KEY')
    if not private_key:
        print("Error: Missing wallet key. Set BLOOM_AGENT_PRIVATE_KEY or use --key", file=sys.stderr)
        return 1

    try:
        config = AuthConfig.from_env()
        signer = LocalWalletSigner(private_key)
        issuer = AgentTokenIssuer(config, signer)
        claims = new_claims(
            signer.address,
            scope=args.scope or None,
            ttl_seconds=int(args.ttl_hours * 3600) if args.ttl_hours is not None else config.ttl_seconds,
            agent_id=args.agent_id,
        )
        token = asyncio.run(issuer.issue(claims))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except (AgentAuthError, ValueError) as e:
        print(f"Error issuing token: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            "token": token,
            "address": claims.address,
            "scope": claims.scope,
            "expiresAt": claims.expires_at,
            "dashboardUrl": dashboard_url(token),
        }, indent=2))
    elif args.url:
        print(dashboard_url(token))
    else:
        print(token)

    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify an agent token with the configured secret."""
    try:
        config = AuthConfig.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    result = Verifier(config).verify(args.token)

    if result.ok:
        session = result.session
        if args.json:
            output = {"valid": True, "session": session.to_dict()}
            if result.identity is not None:
                output["identity"] = result.identity.to_dict()
            print(json.dumps(output, indent=2))
        else:
            print("✅ VALID")
            print(f"   Address: {session.address}")
            print(f"   Scope:   {', '.join(session.scope)}")
            print(f"   Expires: {session.expires_at}")
        return 0

    if args.json:
        print(json.dumps({"valid": False, "reason": result.reason.value, "error": result.error}))
    else:
        print(f"❌ INVALID ({result.reason.value}): {result.error}")
    return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Show the effective configuration without the secret."""
    try:
        config = AuthConfig.from_env()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    print_config(config)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog='bloomauth',
        description='Bloom Agent Auth CLI - wallet-backed tokens for the Bloom dashboard'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # init command
    p_init = subparsers.add_parser('init', help='Generate a local agent wallet')
    p_init.add_argument('--env', action='store_true', help='Output as environment variables')

    # issue command
    p_issue = subparsers.add_parser('issue', help='Issue an agent token')
    p_issue.add_argument('--key', help='Wallet private key (hex)')
    p_issue.add_argument('--scope', action='append', help='Scope to grant (repeatable)')
    p_issue.add_argument('--ttl-hours', type=float, help='Token lifetime in hours (default: BLOOM_TOKEN_TTL_SECONDS)')
    p_issue.add_argument('--agent-id', help='Platform agent id to embed')
    p_issue.add_argument('--url', action='store_true', help='Print the dashboard URL instead')
    p_issue.add_argument('--json', action='store_true', help='Output as JSON')

    # verify command
    p_verify = subparsers.add_parser('verify', help='Verify an agent token')
    p_verify.add_argument('token', help='The token to verify')
    p_verify.add_argument('--json', action='store_true', help='Output as JSON')

    subparsers.add_parser('config', help='Show effective configuration')

    args = parser.parse_args(argv)

    setup_logging(args.verbose if hasattr(args, 'verbose') else False)

    if args.command == 'init':
        return cmd_init(args)
    elif args.command == 'issue':
        return cmd_issue(args)
    elif args.command == 'verify':
        return cmd_verify(args)
    elif args.command == 'config':
        return cmd_config(args)
    else:
        parser.print_help()
        return 0


if __name__ == '__main__':
    sys.exit(main())
