"""Command-line interface for the Ghost Admin API."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cli.output import names, print_details, print_json, print_table
from specter.api.auth import parse_api_key
from specter.api.client import AdminClient, decode_json
from specter.config import (
    DEFAULT_PROFILE,
    Endpoint,
    Settings,
    list_instances,
    load_endpoint,
    save_instance,
)
from specter.content.frontmatter import parse_file
from specter.exceptions import SpecterError
from specter.schemas.payloads import (
    MemberPayload,
    NewsletterPayload,
    TagPayload,
    TierPayload,
    named_refs,
)
from specter.services import resource_service
from specter.services.post_service import build_create_payload, build_update_payload
from specter.services.resource_service import (
    MEMBERS,
    NEWSLETTERS,
    PAGES,
    POSTS,
    TAGS,
    TIERS,
    USERS,
    Column,
    Resource,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

PROG = "specter"


@dataclass
class CliContext:
    """Per-invocation options, passed explicitly to every command."""

    url: str | None
    key: str | None
    profile: str | None
    output: str
    settings: Settings

    @property
    def json(self) -> bool:
        return self.output == "json"

    def endpoint(self) -> Endpoint:
        return load_endpoint(
            url=self.url, key=self.key, profile=self.profile, settings=self.settings
        )

    def client(self) -> AdminClient:
        return AdminClient(self.endpoint())


def _configure_logging(verbose: bool) -> None:
    """Configure CLI logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    # Quiet noisy libraries
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "yes", "1"}:
        return True
    if lowered in {"false", "no", "0"}:
        return False
    msg = f"expected true or false, got {value!r}"
    raise argparse.ArgumentTypeError(msg)


# ── Generic resource commands ────────────────────────────────────────


def _detail_pairs(resource: Resource, item: dict[str, Any]) -> list[tuple[str, object]]:
    get = item.get
    if resource in (POSTS, PAGES):
        return [
            ("ID", get("id")),
            ("Title", get("title")),
            ("Slug", get("slug")),
            ("Status", get("status")),
            ("URL", get("url")),
            ("Published", get("published_at")),
            ("Tags", names(get("tags"))),
            ("Excerpt", get("excerpt")),
        ]
    if resource is MEMBERS:
        return [
            ("ID", get("id")),
            ("Email", get("email")),
            ("Name", get("name")),
            ("Status", get("status")),
            ("Subscribed", bool(get("subscribed"))),
            ("Created", get("created_at")),
            ("Note", get("note")),
            ("Labels", names(get("labels"))),
        ]
    if resource is USERS:
        return [
            ("ID", get("id")),
            ("Name", get("name")),
            ("Slug", get("slug")),
            ("Email", get("email")),
            ("Status", get("status")),
            ("Bio", get("bio")),
            ("Website", get("website")),
            ("Location", get("location")),
            ("Roles", names(get("roles"))),
            ("Last Seen", get("last_seen")),
        ]
    if resource is TIERS:
        return [
            ("ID", get("id")),
            ("Name", get("name")),
            ("Slug", get("slug")),
            ("Type", get("type")),
            ("Active", get("active")),
            ("Visibility", get("visibility")),
            ("Monthly", get("monthly_price")),
            ("Yearly", get("yearly_price")),
            ("Currency", get("currency")),
            ("Trial Days", get("trial_days")),
            ("Description", get("description")),
        ]
    if resource is NEWSLETTERS:
        return [
            ("ID", get("id")),
            ("Name", get("name")),
            ("Slug", get("slug")),
            ("Status", get("status")),
            ("Sender Name", get("sender_name")),
            ("Sender Email", get("sender_email")),
            ("Reply To", get("sender_reply_to")),
            ("Subscribe On Signup", get("subscribe_on_signup")),
            ("Description", get("description")),
        ]
    return [
        ("ID", get("id")),
        ("Name", get("name")),
        ("Slug", get("slug")),
        ("Visibility", get("visibility")),
        ("Description", get("description")),
        ("Posts", (get("count") or {}).get("posts")),
    ]


def _label(item: dict[str, Any]) -> str:
    return str(item.get("title") or item.get("name") or item.get("email") or item.get("id"))


def _cmd_list(ctx: CliContext, args: argparse.Namespace) -> None:
    resource: Resource = args.resource
    params = {"filter": args.filter} if getattr(args, "filter", None) else None
    with ctx.client() as client:
        items = resource_service.list_items(
            client,
            resource,
            limit=args.limit,
            page=args.page,
            all_pages=args.all,
            params=params,
            max_pages=client.endpoint.max_pages,
        )
    if ctx.json:
        print_json(items)
        return
    print_table(items, resource.columns)


def _cmd_get(ctx: CliContext, args: argparse.Namespace) -> None:
    resource: Resource = args.resource
    with ctx.client() as client:
        item = resource_service.lookup(client, resource, args.identifier)
    if ctx.json:
        print_json(item)
        return
    print_details(_detail_pairs(resource, item))


def _cmd_delete(ctx: CliContext, args: argparse.Namespace) -> None:
    resource: Resource = args.resource
    with ctx.client() as client:
        existing = resource_service.lookup(client, resource, args.identifier)
        resource_service.delete(client, resource, existing["id"])
    if ctx.json:
        print_json({"deleted": existing["id"], "title": _label(existing)})
        return
    print(f"Deleted {resource.singular}: {_label(existing)} ({existing['id']})")


def _report(
    ctx: CliContext, verb: str, resource: Resource, item: dict[str, Any], keys: Sequence[str]
) -> None:
    if ctx.json:
        print_json(item)
        return
    print(f"{verb} {resource.singular}: {_label(item)}")
    width = max(len(k) for k in keys) + 2
    for key in keys:
        label = "ID" if key == "id" else "URL" if key == "url" else key.capitalize()
        print(f"  {label + ':':<{width}}{item.get(key, '')}")


# ── Posts and pages ──────────────────────────────────────────────────


def _cmd_content_create(ctx: CliContext, args: argparse.Namespace) -> None:
    resource: Resource = args.resource
    parsed = parse_file(args.file)
    payload = build_create_payload(parsed, status=args.status, publish_at=args.publish_at)
    with ctx.client() as client:
        created = resource_service.create(client, resource, payload)
    _report(ctx, "Created", resource, created, ("id", "slug", "status", "url"))


def _cmd_content_update(ctx: CliContext, args: argparse.Namespace) -> None:
    resource: Resource = args.resource
    parsed = parse_file(args.file) if args.file else None
    with ctx.client() as client:
        existing = resource_service.lookup(client, resource, args.identifier)
        payload = build_update_payload(
            existing, parsed, status=args.status, publish_at=args.publish_at
        )
        updated = resource_service.update(client, resource, existing["id"], payload)
    _report(ctx, "Updated", resource, updated, ("id", "status"))


# ── Tags, members, tiers, newsletters ────────────────────────────────


def _cmd_tag_create(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = TagPayload(
        name=args.name,
        slug=args.slug,
        description=args.description,
        feature_image=args.feature_image,
        visibility=args.visibility,
    )
    with ctx.client() as client:
        created = resource_service.create(client, TAGS, payload)
    _report(ctx, "Created", TAGS, created, ("id", "slug"))


def _cmd_tag_update(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = TagPayload(
        slug=args.slug,
        description=args.description,
        feature_image=args.feature_image,
        visibility=args.visibility,
        meta_title=args.meta_title,
        meta_description=args.meta_description,
    )
    _update(ctx, TAGS, args.identifier, payload, ("id", "slug"))


def _cmd_member_create(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = MemberPayload(
        email=args.email, name=args.name, note=args.note, labels=named_refs(args.labels)
    )
    with ctx.client() as client:
        created = resource_service.create(client, MEMBERS, payload)
    _report(ctx, "Created", MEMBERS, created, ("id", "status"))


def _cmd_member_update(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = MemberPayload(name=args.name, note=args.note, labels=named_refs(args.labels))
    _update(ctx, MEMBERS, args.identifier, payload, ("id", "status"))


def _cmd_tier_create(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = TierPayload(
        name=args.name,
        slug=args.slug,
        description=args.description,
        monthly_price=args.monthly_price,
        yearly_price=args.yearly_price,
        currency=args.currency,
        visibility=args.visibility,
        trial_days=args.trial_days,
    )
    with ctx.client() as client:
        created = resource_service.create(client, TIERS, payload)
    _report(ctx, "Created", TIERS, created, ("id", "slug"))


def _cmd_tier_update(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = TierPayload(
        slug=args.slug,
        description=args.description,
        monthly_price=args.monthly_price,
        yearly_price=args.yearly_price,
        active=args.active,
        welcome_page_url=args.welcome_page_url,
        visibility=args.visibility,
        trial_days=args.trial_days,
    )
    _update(ctx, TIERS, args.identifier, payload, ("id", "slug"))


def _cmd_newsletter_create(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = NewsletterPayload(
        name=args.name,
        slug=args.slug,
        description=args.description,
        sender_name=args.sender_name,
        sender_email=args.sender_email,
        sender_reply_to=args.reply_to,
    )
    with ctx.client() as client:
        created = resource_service.create(client, NEWSLETTERS, payload)
    _report(ctx, "Created", NEWSLETTERS, created, ("id", "slug"))


def _cmd_newsletter_update(ctx: CliContext, args: argparse.Namespace) -> None:
    payload = NewsletterPayload(
        slug=args.slug,
        description=args.description,
        sender_name=args.sender_name,
        sender_email=args.sender_email,
        sender_reply_to=args.reply_to,
        status=args.status,
        subscribe_on_signup=args.subscribe_on_signup,
        title_font_category=args.title_font,
        body_font_category=args.body_font,
        show_header_icon=args.show_header_icon,
        show_header_title=args.show_header_title,
        show_header_name=args.show_header_name,
    )
    _update(ctx, NEWSLETTERS, args.identifier, payload, ("id", "slug"))


def _update(
    ctx: CliContext,
    resource: Resource,
    identifier: str,
    payload: TagPayload | MemberPayload | TierPayload | NewsletterPayload,
    keys: Sequence[str],
) -> None:
    if payload.is_empty():
        msg = "no updates specified"
        raise ValueError(msg)
    with ctx.client() as client:
        existing = resource_service.lookup(client, resource, identifier)
        updated = resource_service.update(client, resource, existing["id"], payload)
    _report(ctx, "Updated", resource, updated, keys)


# ── Images, site, profiles, login ────────────────────────────────────


def _cmd_image_upload(ctx: CliContext, args: argparse.Namespace) -> None:
    with ctx.client() as client:
        url = client.upload_image(args.file, args.ref)
    if ctx.json:
        print_json({"url": url, "ref": args.ref or ""})
        return
    print(url)


def _fetch_site(client: AdminClient) -> dict[str, Any]:
    site = decode_json(client.get("/site/")).get("site")
    return site if isinstance(site, dict) else {}


def _cmd_site_info(ctx: CliContext, args: argparse.Namespace) -> None:
    with ctx.client() as client:
        site = _fetch_site(client)
    if ctx.json:
        print_json(site)
        return
    print_details(
        [
            ("Title", site.get("title", "")),
            ("Description", site.get("description", "")),
            ("URL", site.get("url", "")),
            ("Version", site.get("version", "")),
            ("Logo", site.get("logo")),
            ("Icon", site.get("icon")),
        ],
        skip_empty=False,
    )


def _cmd_profiles(ctx: CliContext, args: argparse.Namespace) -> None:
    profile_names, default = list_instances()
    if ctx.json:
        print_json({"profiles": profile_names, "default": default})
        return
    if not profile_names:
        print("No profiles configured. Run 'specter login' to set up.")
        return
    rows = [{"name": n, "default": "*" if n == default else ""} for n in profile_names]
    print_table(rows, (_PROFILE_COLUMN, _DEFAULT_COLUMN))


def normalize_site_url(raw_url: str) -> str:
    """Add a missing ``https://`` scheme and drop trailing slashes."""
    url = raw_url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url.rstrip("/")


def _cmd_login(ctx: CliContext, args: argparse.Namespace) -> None:
    profile_name = args.name
    print(f"Setting up profile: {profile_name}")

    raw_url = args.url or ctx.url or input("Enter your Ghost site URL (e.g., https://myblog.com): ")
    site_url = normalize_site_url(raw_url)
    if not args.key and not ctx.key:
        print(
            "Create a custom integration in Ghost Admin and copy its Admin API key:\n"
            f"  {site_url}/ghost/#/settings/integrations/new"
        )
    admin_key = (args.key or ctx.key or getpass.getpass("Admin API Key: ")).strip()
    if not admin_key:
        msg = "admin key cannot be empty"
        raise ValueError(msg)
    parse_api_key(admin_key)

    print("Testing connection...")
    endpoint = Endpoint(base_url=site_url, api_key=admin_key, timeout=ctx.settings.timeout)
    with AdminClient(endpoint) as client:
        site = _fetch_site(client)
    print(f"Connected to: {site.get('title', '')}")

    path = save_instance(profile_name, site_url, admin_key, set_default=args.default)
    print(f"Saved profile '{profile_name}' to: {path}")


# ── Parser ───────────────────────────────────────────────────────────

_PROFILE_COLUMN = Column("PROFILE", "name")
_DEFAULT_COLUMN = Column("DEFAULT", "default")


def _add_list(
    group: argparse._SubParsersAction, resource: Resource, with_filter: bool = False
) -> None:
    p = group.add_parser("list", help=f"List {resource.name}")
    p.add_argument("--limit", type=int, default=15, help=f"Number of {resource.name} to return")
    p.add_argument("--page", type=int, default=1, help="Page number")
    p.add_argument("--all", action="store_true", help="Fetch every page (ignores limit/page)")
    if with_filter:
        p.add_argument("--filter", help="NQL filter, e.g. 'status:free'")
    p.set_defaults(handler=_cmd_list, resource=resource)


def _add_get(group: argparse._SubParsersAction, resource: Resource) -> None:
    p = group.add_parser("get", help=f"Get a {resource.singular} by ID or {resource.lookup_field}")
    p.add_argument("identifier", metavar=f"id-or-{resource.lookup_field}")
    p.set_defaults(handler=_cmd_get, resource=resource)


def _add_delete(group: argparse._SubParsersAction, resource: Resource) -> None:
    p = group.add_parser("delete", help=f"Delete a {resource.singular}")
    p.add_argument("identifier", metavar=f"id-or-{resource.lookup_field}")
    p.set_defaults(handler=_cmd_delete, resource=resource)


def _add_content_commands(subparsers: argparse._SubParsersAction, resource: Resource) -> None:
    parser = subparsers.add_parser(resource.name, help=f"Manage {resource.name}")
    group = parser.add_subparsers(dest="action", required=True)
    _add_list(group, resource)
    _add_get(group, resource)

    create = group.add_parser(
        "create",
        help=f"Create a {resource.singular} from a markdown file ('-' reads stdin)",
    )
    create.add_argument("file", metavar="file.md")
    create.add_argument("--status", choices=("draft", "published", "scheduled"))
    create.add_argument("--publish-at", help="Scheduled publish time (ISO 8601)")
    create.set_defaults(handler=_cmd_content_create, resource=resource)

    update = group.add_parser(
        "update",
        help=f"Update a {resource.singular} from a markdown file and/or options",
    )
    update.add_argument("identifier", metavar="id-or-slug")
    update.add_argument("file", metavar="file.md", nargs="?")
    update.add_argument("--status", choices=("draft", "published", "scheduled"))
    update.add_argument("--publish-at", help="Scheduled publish time (ISO 8601)")
    update.set_defaults(handler=_cmd_content_update, resource=resource)

    _add_delete(group, resource)


def _add_tag_commands(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("tags", help="Manage tags")
    group = parser.add_subparsers(dest="action", required=True)
    _add_list(group, TAGS)
    _add_get(group, TAGS)

    create = group.add_parser("create", help="Create a tag")
    create.add_argument("name")
    create.add_argument("--slug")
    create.add_argument("--description")
    create.add_argument("--feature-image")
    create.add_argument("--visibility", default="public", choices=("public", "internal"))
    create.set_defaults(handler=_cmd_tag_create)

    update = group.add_parser("update", help="Update a tag")
    update.add_argument("identifier", metavar="id-or-slug")
    update.add_argument("--slug")
    update.add_argument("--description")
    update.add_argument("--feature-image")
    update.add_argument("--visibility", choices=("public", "internal"))
    update.add_argument("--meta-title")
    update.add_argument("--meta-description")
    update.set_defaults(handler=_cmd_tag_update)

    _add_delete(group, TAGS)


def _add_member_commands(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("members", help="Manage members")
    group = parser.add_subparsers(dest="action", required=True)
    _add_list(group, MEMBERS, with_filter=True)
    _add_get(group, MEMBERS)

    create = group.add_parser("create", help="Create a member")
    create.add_argument("email")
    create.add_argument("--name")
    create.add_argument("--note")
    create.add_argument("--labels", type=_csv, help="Comma-separated labels")
    create.set_defaults(handler=_cmd_member_create)

    update = group.add_parser("update", help="Update a member")
    update.add_argument("identifier", metavar="id-or-email")
    update.add_argument("--name")
    update.add_argument("--note")
    update.add_argument("--labels", type=_csv, help="Comma-separated labels")
    update.set_defaults(handler=_cmd_member_update)

    _add_delete(group, MEMBERS)


def _add_tier_commands(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("tiers", help="Manage tiers")
    group = parser.add_subparsers(dest="action", required=True)
    _add_list(group, TIERS)
    _add_get(group, TIERS)

    create = group.add_parser("create", help="Create a tier")
    create.add_argument("name")
    create.add_argument("--slug")
    create.add_argument("--description")
    create.add_argument("--monthly-price", type=int, help="Monthly price in cents")
    create.add_argument("--yearly-price", type=int, help="Yearly price in cents")
    create.add_argument("--currency", default="usd")
    create.add_argument("--visibility", default="public", choices=("public", "none"))
    create.add_argument("--trial-days", type=int)
    create.set_defaults(handler=_cmd_tier_create)

    update = group.add_parser("update", help="Update a tier")
    update.add_argument("identifier", metavar="id-or-slug")
    update.add_argument("--slug")
    update.add_argument("--description")
    update.add_argument("--monthly-price", type=int)
    update.add_argument("--yearly-price", type=int)
    update.add_argument("--active", type=_bool, help="true or false")
    update.add_argument("--welcome-page-url")
    update.add_argument("--visibility", choices=("public", "none"))
    update.add_argument("--trial-days", type=int)
    update.set_defaults(handler=_cmd_tier_update)


def _add_newsletter_commands(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("newsletters", help="Manage newsletters")
    group = parser.add_subparsers(dest="action", required=True)
    _add_list(group, NEWSLETTERS)
    _add_get(group, NEWSLETTERS)

    create = group.add_parser("create", help="Create a newsletter")
    create.add_argument("name")
    for flag in ("--slug", "--description", "--sender-name", "--sender-email", "--reply-to"):
        create.add_argument(flag)
    create.set_defaults(handler=_cmd_newsletter_create)

    update = group.add_parser("update", help="Update a newsletter")
    update.add_argument("identifier", metavar="id-or-slug")
    for flag in ("--slug", "--description", "--sender-name", "--sender-email", "--reply-to"):
        update.add_argument(flag)
    update.add_argument("--status", choices=("active", "archived"))
    update.add_argument("--subscribe-on-signup", type=_bool)
    update.add_argument("--title-font", choices=("serif", "sans_serif"))
    update.add_argument("--body-font", choices=("serif", "sans_serif"))
    update.add_argument("--show-header-icon", type=_bool)
    update.add_argument("--show-header-title", type=_bool)
    update.add_argument("--show-header-name", type=_bool)
    update.set_defaults(handler=_cmd_newsletter_update)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Manage Ghost sites via the Admin API",
        epilog=(
            "Configure with GHOST_URL and GHOST_ADMIN_KEY, or run 'specter login' to "
            "store a profile in ~/.config/specter/config.yaml."
        ),
    )
    parser.add_argument("--url", help="Ghost site URL")
    parser.add_argument("--key", help="Ghost Admin API key (id:secret)")
    parser.add_argument("--profile", "-p", help="Config profile to use")
    parser.add_argument("--output", "-o", default="text", choices=("text", "json"))
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_content_commands(subparsers, POSTS)
    _add_content_commands(subparsers, PAGES)
    _add_tag_commands(subparsers)
    _add_member_commands(subparsers)
    _add_tier_commands(subparsers)
    _add_newsletter_commands(subparsers)

    users = subparsers.add_parser("users", help="View staff users")
    users_group = users.add_subparsers(dest="action", required=True)
    _add_list(users_group, USERS)
    _add_get(users_group, USERS)

    images = subparsers.add_parser("images", help="Manage images")
    images_group = images.add_subparsers(dest="action", required=True)
    upload = images_group.add_parser("upload", help="Upload an image")
    upload.add_argument("file")
    upload.add_argument("--ref", help="Reference name for the image")
    upload.set_defaults(handler=_cmd_image_upload)

    site = subparsers.add_parser("site", help="Site information")
    site_group = site.add_subparsers(dest="action", required=True)
    site_group.add_parser("info", help="Get site information").set_defaults(
        handler=_cmd_site_info
    )

    profiles = subparsers.add_parser("profiles", aliases=["profile"], help="List profiles")
    profiles.set_defaults(handler=_cmd_profiles)

    login = subparsers.add_parser("login", help="Save credentials for a Ghost site")
    login.add_argument("name", nargs="?", default=DEFAULT_PROFILE, metavar="profile-name")
    login.add_argument("--url", dest="login_url", help="Ghost site URL")
    login.add_argument("--key", dest="login_key", help="Admin API key")
    login.add_argument("--default", action="store_true", help="Make this the default profile")
    login.set_defaults(handler=_cmd_login)

    return parser


def run(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    """Parse arguments, run the command and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        ctx = CliContext(
            url=args.url,
            key=args.key,
            profile=args.profile,
            output=args.output,
            settings=settings if settings is not None else Settings(),
        )
        if args.command == "login":
            args.url = args.login_url
            args.key = args.login_key
        args.handler(ctx, args)
    except (SpecterError, OSError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    return 0


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
