from django.core.management.base import BaseCommand, CommandError

from clientapp import directory
from clientapp.exceptions import MemberNotFound
from clientapp.services import tree_snapshot


def render_tree(snapshot):
    """ASCII lines for a tree_snapshot() dict."""
    lines = [f"{snapshot['member_id']} - {snapshot['name']}"]
    stack = [(child, "", i == len(snapshot["children"]) - 1)
             for i, child in reversed(list(enumerate(snapshot["children"])))]

    while stack:
        node, prefix, last = stack.pop()
        branch = "└── " if last else "├── "
        lines.append(
            f"{prefix}{branch}[{(node['position'] or '?')[0].upper()}] "
            f"{node['member_id']} - {node['name']} ({node['package'] or '-'})"
        )
        child_prefix = prefix + ("    " if last else "│   ")
        children = node["children"]
        for i, child in reversed(list(enumerate(children))):
            stack.append((child, child_prefix, i == len(children) - 1))

    return lines


class Command(BaseCommand):
    help = "Print the client tree below a member (default: the admin anchor)"

    def add_arguments(self, parser):
        parser.add_argument("member_id", nargs="?")
        parser.add_argument("--depth", type=int, default=None)

    def handle(self, *args, **options):
        member_id = options["member_id"]
        if not member_id:
            anchor = directory.get_admin_anchor()
            if anchor is None:
                raise CommandError("No admin anchor found. Run init_directory first.")
            member_id = anchor.member_id

        try:
            snapshot = tree_snapshot(member_id, depth=options["depth"])
        except MemberNotFound as exc:
            raise CommandError(str(exc))

        for line in render_tree(snapshot):
            self.stdout.write(line)
