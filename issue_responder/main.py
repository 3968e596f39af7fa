import asyncio

from dotenv import load_dotenv

load_dotenv(override=True)

from issue_responder.api import build_download_options
from issue_responder.attachments import AttachmentUrlMap, download_attachments
from issue_responder.github import GitHubClient


async def download_for(repo: str, number: int, is_pull_request: bool, downloads_dir: str | None, max_size: int | None) -> AttachmentUrlMap:
    """Collect every text of an issue or PR and download its attachments."""
    options = build_download_options()
    if downloads_dir:
        options.downloads_dir = downloads_dir
    if max_size is not None:
        options.max_file_size = max_size

    async with GitHubClient.from_full_name(repo) as github:
        if is_pull_request:
            texts = await github.collect_pull_request_source_texts(number)
        else:
            texts = await github.collect_issue_source_texts(number)
        print(f"📥 Collected {len(texts)} text(s) from {repo}#{number}")
        return await download_attachments(texts, github, options)


async def cmd_download(args):
    """Run attachment download command."""
    number = args.pr if args.pr is not None else args.issue
    url_map = await download_for(
        repo=args.repo,
        number=number,
        is_pull_request=args.pr is not None,
        downloads_dir=args.dir,
        max_size=args.max_size,
    )

    print("\n" + "=" * 80)
    print(f"📋 DOWNLOADED ATTACHMENTS ({len(url_map)})")
    print("=" * 80)
    for url, path in url_map.items():
        print(f"{url}\n  → {path}")
    for url, reason in url_map.rejections.items():
        print(f"· skipped {url}: {reason}")
    for url, reason in url_map.failures.items():
        print(f"✗ failed {url}: {reason}")


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Resolve and download GitHub issue/PR attachments")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Download command
    download_parser = subparsers.add_parser("download", help="Download attachments of an issue or pull request")
    download_parser.add_argument("--repo", "-r", required=True, help="GitHub repository (owner/repo)")
    target = download_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--issue", "-i", type=int, help="Issue number")
    target.add_argument("--pr", type=int, help="Pull request number")
    download_parser.add_argument("--dir", "-d", help="Directory to store downloads (default: $ATTACHMENTS_DIR or /tmp/github-attachments)")
    download_parser.add_argument("--max-size", type=int, help="Max file size in bytes (default: 50MB)")

    # Serve command (API mode)
    serve_parser = subparsers.add_parser("serve", help="Run API server for GitHub webhooks")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", "-p", type=int, default=8000, help="Port to listen on (default: 8000)")

    args = parser.parse_args()

    if args.command == "download":
        asyncio.run(cmd_download(args))
    elif args.command == "serve":
        from issue_responder.api import run_server
        run_server(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
