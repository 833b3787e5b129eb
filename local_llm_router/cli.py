"""CLI entry point for local-llm-router.

Thin terminal front end over the command surface; the same calls the
MCP server exposes.

Entry point:
    local-llm-router servers [--json]
    local-llm-router models [--json]
    local-llm-router generate --provider ollama --model llama3:8b "prompt"
    local-llm-router chat --provider lmstudio --model qwen2.5-7b [--system ...] "message"
    local-llm-router recommend --ram 32 [--vram 8]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from local_llm_router.errors import RouterError

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# ARGUMENT PARSING
# ─────────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="local-llm-router",
        description="Query local Ollama and LM Studio servers through one interface.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    servers_p = sub.add_parser("servers", help="Show which servers are reachable")
    servers_p.add_argument("--json", action="store_true", dest="json_output", help="Full JSON output")

    models_p = sub.add_parser("models", help="List models across all servers")
    models_p.add_argument("--json", action="store_true", dest="json_output", help="Full JSON output")

    for name, help_text, arg in (
        ("generate", "Complete a prompt", "prompt"),
        ("chat", "Send one chat message", "message"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--provider", default="ollama", help="ollama or lmstudio (default: ollama)")
        p.add_argument("--model", required=True, help="Model id as listed by the server")
        p.add_argument("--temperature", type=float, default=None, help="Sampling temperature")
        p.add_argument("--json", action="store_true", dest="json_output", help="Full JSON output")
        if name == "chat":
            p.add_argument("--system", default=None, help="Optional system prompt")
        p.add_argument(arg, help=f"{arg.capitalize()} text")

    rec_p = sub.add_parser("recommend", help="Recommend a default model for this hardware")
    rec_p.add_argument("--ram", type=int, required=True, help="System RAM in GB")
    rec_p.add_argument("--vram", type=int, default=0, help="GPU VRAM in GB")

    return parser


# ─────────────────────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────────────────────


async def _cmd_servers(json_output: bool = False) -> int:
    """Print server status. Returns exit code."""
    from local_llm_router.commands import detect_servers

    status = await detect_servers()

    if json_output:
        json.dump(status, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0

    for provider, entry in status.items():
        if entry["connected"]:
            print(f"{provider}: connected ({len(entry['models_loaded'])} models)")
        else:
            print(f"{provider}: not connected - {entry['error']}")
    return 0


async def _cmd_models(json_output: bool = False) -> int:
    """List models from every server. Returns exit code."""
    from local_llm_router.commands import list_models

    models = await list_models()

    if json_output:
        json.dump(models, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        for model in models:
            quant = f" [{model['quantization']}]" if model["quantization"] else ""
            print(f"{model['provider']}\t{model['id']}\t{model['name']}{quant}")
        if not models:
            print("No models found. Is Ollama or LM Studio running?", file=sys.stderr)

    return 0


def _print_metrics(result: dict) -> None:
    print(
        f"\n[{result['model']}] {result['tokens_generated']} tokens in "
        f"{result['generation_time_ms']}ms ({result['tokens_per_second']:.1f} tok/s)",
        file=sys.stderr,
    )


async def _cmd_generate(
    provider: str,
    model: str,
    prompt: str,
    temperature: Optional[float] = None,
    json_output: bool = False,
) -> int:
    from local_llm_router.commands import generate

    result = await generate(provider, model, prompt, temperature)
    if json_output:
        json.dump(result, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print(result["text"])
        _print_metrics(result)
    return 0


async def _cmd_chat(
    provider: str,
    model: str,
    message: str,
    system: Optional[str] = None,
    temperature: Optional[float] = None,
    json_output: bool = False,
) -> int:
    from local_llm_router.commands import chat

    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": message})

    result = await chat(provider, model, messages, temperature)
    if json_output:
        json.dump(result, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print(result["message"]["content"])
        _print_metrics(result)
    return 0


def _cmd_recommend(ram: int, vram: int = 0) -> int:
    from local_llm_router.commands import optimal_model

    print(optimal_model(ram_gb=ram, vram_gb=vram))
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Dispatch a parsed command, closing the router afterwards."""
    from local_llm_router.commands import get_router

    try:
        if args.command == "servers":
            return await _cmd_servers(json_output=args.json_output)
        if args.command == "models":
            return await _cmd_models(json_output=args.json_output)
        if args.command == "generate":
            return await _cmd_generate(
                provider=args.provider,
                model=args.model,
                prompt=args.prompt,
                temperature=args.temperature,
                json_output=args.json_output,
            )
        if args.command == "chat":
            return await _cmd_chat(
                provider=args.provider,
                model=args.model,
                message=args.message,
                system=args.system,
                temperature=args.temperature,
                json_output=args.json_output,
            )
        return 1
    finally:
        await get_router().aclose()


# ─────────────────────────────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────────────────────────────


def main():
    parser = _build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s %(message)s", stream=sys.stderr)

    # Load env
    from dotenv import load_dotenv
    load_dotenv()

    try:
        if args.command == "recommend":
            code = _cmd_recommend(ram=args.ram, vram=args.vram)
        else:
            from local_llm_router.commands import set_router
            from local_llm_router.router import LLMRouter

            set_router(LLMRouter.from_env())
            code = asyncio.run(_run(args))
    except RouterError as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
