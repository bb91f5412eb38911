"""CLI for one prove-and-submit transfer."""
import argparse
import asyncio
import sys

from qrypta.core.chains import ChainKey
from qrypta.core.config import PipelineConfig, get_settings
from qrypta.core.errors import ConfigurationError, PipelineError
from qrypta.core.logging_config import LoggingConfig, SensitiveDataFilter
from qrypta.core.utils import print_block, print_separator
from qrypta.pipeline.lifecycle import PipelineState
from qrypta.pipeline.orchestrator import RunOptions, TransferPipeline
from qrypta.services.input_provider import (InputProvider, InteractivePrompter,
                                            PresetInputProvider)

NOTES = """
environment:
  PROVER_URL                       proving service base URL (must return { publicValues, proofBytes })
  OWNER_PK                         signing private key
  RPC_ETH / RPC_BNB                per-chain RPC endpoint
  QRYP_CONTRACT_ETH / _BNB         per-chain contract address
  DEFAULT_DEADLINE_MINUTES         proof deadline (default 30)

A .env file in the working directory is read as well.
"""

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def print_header():
    print_separator("PQC Terminal Demo")
    print(" SP1 proof → quantumTransferZK → on-chain receipt")


def print_error(error: PipelineError):
    stage = f" (during {error.stage})" if error.stage else ""
    print(f"\nERROR: {error.kind}{stage}: {error}", file=sys.stderr)


def build_parser():
    p = argparse.ArgumentParser(
        prog="qrypta-transfer",
        description="Generate a proof and submit quantumTransferZK",
        epilog=NOTES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--chain", choices=[key.value for key in ChainKey], help="Network to use")
    p.add_argument("--recipient", help="Recipient address (0x + 40 hex)")
    p.add_argument("--amount", help="Amount in human units, e.g. 1.25")
    p.add_argument("--title", help="ISO reference title (default: PQC DEMO)")
    p.add_argument("--deadline-minutes", type=int, help="Proof deadline override")
    p.add_argument("--dry-run", action="store_true", help="Validate and show the summary; send nothing")
    p.add_argument("--fake", action="store_true", help="Ask the prover for a fake proof")
    p.add_argument("--non-interactive", action="store_true", help="Never prompt; invalid flags fail the run")
    p.add_argument(
        "--yes", "-y", action="store_true",
        help="Skip the confirmation question (only with --non-interactive)",
    )
    p.add_argument(
        "--log-level", type=str.upper, choices=LOG_LEVELS, help="Override LOG_LEVEL",
    )
    return p


def make_input_provider(args) -> InputProvider:
    if args.non_interactive:
        return PresetInputProvider(
            chain=args.chain,
            recipient=args.recipient,
            amount=args.amount,
            title=args.title,
            assume_yes=args.yes,
        )
    return InteractivePrompter(
        chain=args.chain,
        recipient=args.recipient,
        amount=args.amount,
        title=args.title,
    )


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if args.yes and not args.non_interactive:
        p.error("--yes requires --non-interactive")
    if args.deadline_minutes is not None and args.deadline_minutes < 1:
        p.error("--deadline-minutes must be at least 1")

    settings = get_settings()
    LoggingConfig.configure(settings=settings, level=args.log_level, force=True)
    print_header()

    try:
        config = PipelineConfig.from_settings(settings, required_chain=args.chain)
    except ConfigurationError as e:
        e.stage = "startup"
        print_error(e)
        return 1
    SensitiveDataFilter.register_secret(config.signing_credential.get_secret_value())

    pipeline = TransferPipeline(config, make_input_provider(args), reporter=print_block)
    result = asyncio.run(pipeline.run(RunOptions(
        dry_run=args.dry_run,
        fake_proof=args.fake,
        deadline_minutes=args.deadline_minutes,
    )))

    if result.state is PipelineState.FAILED:
        print_error(result.error)
    elif result.state is PipelineState.CANCELLED:
        print("Cancelled.")
    elif result.state is PipelineState.DRY_RUN_EXIT:
        print("Dry run complete; nothing was sent.")
    else:
        print("Done ✅")
    return result.exit_code


def run():
    raise SystemExit(main())


if __name__ == "__main__":
    run()
