"""Local authoring tool for the post store.

Usage:
    python -m scripts.posts list [--drafts]
    python -m scripts.posts show ID
    python -m scripts.posts new "Title" --file body.md [--description TEXT] [--publish]
    python -m scripts.posts edit ID [--title TEXT] [--file body.md] [--description TEXT]
    python -m scripts.posts publish ID
    python -m scripts.posts delete ID
    python -m scripts.posts migrate
    python -m scripts.posts render FILE
"""

import argparse
import logging
import sys
from pathlib import Path

from pressroom.config import get_settings
from pressroom.exceptions import PostError, StorageError
from pressroom.models.post import PostStatus, PostUpdate
from pressroom.services.highlighter import CodeHighlighter
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.post_store import PostStore

logger = logging.getLogger("scripts.posts")


def build_store(content_dir: Path | None = None) -> PostStore:
    """Wire highlighter → renderer → store, once per process."""
    settings = get_settings()
    highlighter = CodeHighlighter(
        light_style=settings.code_theme_light,
        dark_style=settings.code_theme_dark,
    )
    return PostStore(
        content_dir or settings.content_dir,
        MarkdownRenderer(highlighter),
        slug_max_length=settings.slug_max_length,
        words_per_minute=settings.words_per_minute,
    )


def _read_body(path: str | None) -> str | None:
    if path is None:
        return None
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def cmd_list(store: PostStore, args: argparse.Namespace) -> int:
    posts = store.list_drafts() if args.drafts else store.list_posts()
    for post in posts:
        marker = "D" if post.status is PostStatus.DRAFT else "P"
        legacy = " (legacy)" if post.is_legacy else ""
        print(f"{marker} {post.id or '-':26}  {post.created_at:%Y-%m-%d}  {post.title}{legacy}")
    print(f"\n{len(posts)} post(s)")
    return 0


def cmd_show(store: PostStore, args: argparse.Namespace) -> int:
    post = store.get_by_id(args.id)
    if post is None:
        print(f"Post {args.id} not found", file=sys.stderr)
        return 1
    detail = store.render_post(post)
    print(f"{detail.title}  [{detail.status.value}]  {detail.reading_time}")
    for node in detail.outline:
        print(f"  {'  ' * max(node.level - 1, 0)}- {node.text}")
        for child in node.children:
            print(f"      - {child.text}")
    return 0


def cmd_new(store: PostStore, args: argparse.Namespace) -> int:
    status = PostStatus.PUBLISHED if args.publish else PostStatus.DRAFT
    post = store.create(
        title=args.title,
        content=_read_body(args.file) or "",
        description=args.description,
        status=status,
    )
    print(f"Created {post.id} ({post.slug}) as {post.status.value}")
    return 0


def cmd_edit(store: PostStore, args: argparse.Namespace) -> int:
    fields = {}
    if args.title is not None:
        fields["title"] = args.title
    if args.description is not None:
        fields["description"] = args.description
    body = _read_body(args.file)
    if body is not None:
        fields["content"] = body
    post = store.update(args.id, PostUpdate(**fields))
    print(f"Updated {post.id} ({post.slug})")
    return 0


def cmd_publish(store: PostStore, args: argparse.Namespace) -> int:
    post = store.publish(args.id)
    print(f"Published {post.id} at {post.published_at.isoformat()}")
    return 0


def cmd_delete(store: PostStore, args: argparse.Namespace) -> int:
    store.delete(args.id)
    print(f"Deleted {args.id}")
    return 0


def cmd_migrate(store: PostStore, args: argparse.Namespace) -> int:
    migrated = store.migrate_legacy()
    for post in migrated:
        print(f"Migrated {post.slug} -> {post.id}")
    print(f"\n{len(migrated)} legacy file(s) migrated")
    return 0


def cmd_render(store: PostStore, args: argparse.Namespace) -> int:
    print(store.renderer.render(_read_body(args.file) or ""))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Draft and publish Markdown posts")
    parser.add_argument(
        "--content-dir", type=Path, default=None, help="Override the content directory"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List posts, newest first")
    p.add_argument("--drafts", action="store_true", help="Only drafts")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show a post's outline and reading time")
    p.add_argument("id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("new", help="Create a draft")
    p.add_argument("title")
    p.add_argument("--file", required=True, help="Markdown body file ('-' for stdin)")
    p.add_argument("--description", default=None)
    p.add_argument("--publish", action="store_true", help="Create as published")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("edit", help="Update an existing post")
    p.add_argument("id")
    p.add_argument("--title", default=None)
    p.add_argument("--description", default=None)
    p.add_argument("--file", default=None, help="Replacement body ('-' for stdin)")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("publish", help="Publish a draft")
    p.add_argument("id")
    p.set_defaults(func=cmd_publish)

    p = sub.add_parser("delete", help="Delete a post")
    p.add_argument("id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("migrate", help="Rename legacy files to {id}-{slug}.md")
    p.set_defaults(func=cmd_migrate)

    p = sub.add_parser("render", help="Render a Markdown file to HTML")
    p.add_argument("file", help="Markdown file ('-' for stdin)")
    p.set_defaults(func=cmd_render)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    store = build_store(args.content_dir)
    try:
        return args.func(store, args)
    except PostError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        logger.error("Storage failure: %s", e, exc_info=e)
        return 2
    except OSError as e:
        # Body files given with --file; the store wraps its own I/O errors
        print(f"Error: cannot read {e.filename}: {e.strerror or e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
