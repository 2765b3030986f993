"""命令行入口

    image-relay generate "a cat on the moon" --provider gemini --output cat.png
    image-relay serve --port 8000
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

from .config import ProviderConfig
from .errors import ImageRelayError
from .image.client import ImageClient, available_providers
from .image.output import save_image

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def run_generate(
    prompt: str,
    *,
    provider: str | None = None,
    width: int | None = None,
    height: int | None = None,
    output: Path | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """生成图片，输出引用或保存到文件，返回退出码"""
    try:
        config = ProviderConfig.from_env(provider)
        async with ImageClient(config, transport=transport) as client:
            image = await client.generate(prompt, width=width, height=height)
            if output:
                path = await save_image(image, output, transport=transport)
                print(path)
            else:
                print(image.url)
    except (ImageRelayError, ValueError) as e:
        print(f"Error generating image: {e}. Please try again.", file=sys.stderr)
        return 1
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("image_relay.proxy:app", host=host, port=port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image-relay", description="文生图客户端与代理")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出 DEBUG 日志")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="根据 prompt 生成一张图片")
    gen.add_argument("prompt")
    gen.add_argument("--provider", choices=available_providers())
    gen.add_argument("--width", type=int)
    gen.add_argument("--height", type=int)
    gen.add_argument("-o", "--output", type=Path, help="保存路径（.png/.jpg/.webp）")

    serve = sub.add_parser("serve", help="启动 /generate-image 代理")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "serve":
        return _serve(args.host, args.port)
    return asyncio.run(
        run_generate(
            args.prompt,
            provider=args.provider,
            width=args.width,
            height=args.height,
            output=args.output,
        )
    )


if __name__ == "__main__":
    sys.exit(main())
