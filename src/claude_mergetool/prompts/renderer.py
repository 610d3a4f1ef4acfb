"""Jinja2 rendering of the prompts Claude receives for a merge."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2
import structlog

from claude_mergetool.config import MergetoolConfig

if TYPE_CHECKING:
    from claude_mergetool.merge import MergeRequest

logger = structlog.get_logger()

TEMPLATES_DIR = Path(__file__).parent / "templates"

SYSTEM_TEMPLATE = "merge_system.md"
USER_TEMPLATE = "merge_user.md"


@dataclass(frozen=True)
class MergePrompts:
    """The prompt pair for one merge.

    Attributes:
        system: Appended to Claude's system prompt.
        user: The task itself, naming the three input files and the output.
    """

    system: str
    user: str


class MergePromptRenderer:
    """Renders the system and user prompts for a merge request.

    Example:
        >>> from claude_mergetool.merge import MergeRequest
        >>> request = MergeRequest(
        ...     base=Path("/tmp/b"), left=Path("/tmp/l"), right=Path("/tmp/r"),
        ...     git_merge_driver=True, filepath="src/lib.rs",
        ... )
        >>> prompts = MergePromptRenderer().render(request)
        >>> "`src/lib.rs`" in prompts.system
        True
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        """Initialize the renderer.

        Args:
            templates_dir: Directory holding ``merge_system.md`` and
                ``merge_user.md``. Defaults to the bundled templates.
        """
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def context(self, request: MergeRequest) -> dict[str, Any]:
        """Template variables for a request.

        Raises:
            UsageError: If the request has no output path.
        """
        return {
            "filepath": request.display_filepath(),
            "left_label": request.left_label,
            "right_label": request.right_label,
            "base": request.base,
            "left": request.left,
            "right": request.right,
            "output": request.output_path(),
        }

    def render(
        self, request: MergeRequest, config: MergetoolConfig | None = None
    ) -> MergePrompts:
        """Render both prompts, with the configured extra system prompt appended.

        Raises:
            UsageError: If the request has no output path.
            jinja2.TemplateNotFound: If a template is missing from ``templates_dir``.
            jinja2.UndefinedError: If a template uses an unknown variable.
        """
        config = config or MergetoolConfig()
        context = self.context(request)
        log = logger.bind(filepath=context["filepath"])

        system = self.env.get_template(SYSTEM_TEMPLATE).render(**context)
        user = self.env.get_template(USER_TEMPLATE).render(**context)

        log.debug("Prompts rendered", system_length=len(system), user_length=len(user))
        return MergePrompts(system=config.append_system_prompt(system), user=user)
