"""
Git hook installer.

Writes pre-commit, post-checkout and post-merge hooks that keep the store
in sync with commits and re-apply it after checkouts and merges.
"""

import logging
import os
import shlex
from pathlib import Path

from gitmeta.core.options import RunOptions
from gitmeta.infrastructure.store_file import current_umask
from gitmeta.infrastructure.vcs import VCSInterface
from gitmeta.services.models import HookExistsError

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = ".git_store_meta"

PRE_COMMIT_TEMPLATE = """\
#!/bin/sh
# when running the hook, cwd is the top level of working tree

# update (or store as fallback) the metadata file if it exists
if [ -f {store} ]; then
    {command} update{target_option} ||
    {command} store{target_option} ||
    exit 1

    # remember to add the updated metadata file
    git add {store}
fi
"""

POST_CHECKOUT_TEMPLATE = """\
#!/bin/sh
# when running the hook, cwd is the top level of working tree

sha_old=$1
sha_new=$2
change_br=$3

# apply metadata only when HEAD is changed
if [ "$sha_new" != "$sha_old" ]; then
    {command} apply{target_option}
fi
"""

POST_MERGE_TEMPLATE = """\
#!/bin/sh
# when running the hook, cwd is the top level of working tree

is_squash=$1

# apply metadata after a successful non-squash merge
if [ "$is_squash" -eq 0 ]; then
    {command} apply{target_option}
fi
"""

HOOK_TEMPLATES = {
    "pre-commit": PRE_COMMIT_TEMPLATE,
    "post-checkout": POST_CHECKOUT_TEMPLATE,
    "post-merge": POST_MERGE_TEMPLATE,
}


def render_hook(template: str, target_name: str, command: str = "gitmeta") -> str:
    """Fill a hook template for a store file name."""
    target_option = ""
    if target_name != DEFAULT_STORE_NAME:
        target_option = f" --target {shlex.quote(target_name)}"
    return template.format(
        store=shlex.quote(target_name),
        command=command,
        target_option=target_option,
    )


class HookInstaller:
    """Installs the gitmeta hooks into a repository's hooks directory."""

    def __init__(self, vcs: VCSInterface, options: RunOptions, command: str = "gitmeta"):
        self._vcs = vcs
        self._options = options
        self._command = command

    def install(self) -> list[Path]:
        """
        Write every hook.

        Existing hooks are only overwritten with force; otherwise nothing is
        written when any of them exists.

        Returns:
            Paths of the written hooks

        Raises:
            HookExistsError: If a hook exists and force is off
            OSError: If a hook cannot be written
        """
        hooks_dir = self._vcs.hooks_dir()
        targets = {name: hooks_dir / name for name in HOOK_TEMPLATES}

        existing = [path for path in targets.values() if path.exists()]
        if existing and not self._options.force:
            listed = ", ".join(f"`{path}'" for path in existing)
            raise HookExistsError(f"hook file {listed} already exists; use --force to overwrite", existing)

        if self._options.dry_run:
            return list(targets.values())

        hooks_dir.mkdir(parents=True, exist_ok=True)
        mode = 0o777 & ~current_umask()
        written = []
        for name, path in targets.items():
            content = render_hook(HOOK_TEMPLATES[name], self._options.target_name, self._command)
            path.write_text(content, encoding="utf-8")
            os.chmod(path, mode)
            logger.info(f"Created hook {path}")
            written.append(path)
        return written
