# ==== PROMPT LOADER SERVICE ==== #

"""
Prompt loader for external prompt templates.

Prompts live as Markdown files under ``subject_analyzer/prompts`` and are
rendered with Jinja2.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from subject_analyzer.business.industries import INDUSTRY_DISPLAY_NAMES, Industry
from subject_analyzer.observability.logging import ContextualLogger


logger = ContextualLogger(__name__)

# Base directory for prompts
PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


# ==== PROMPT LOADER CLASS ==== #


class PromptLoader:
    """
    Loader for external prompt templates with Jinja2 support.

    Missing template variables raise instead of rendering blanks, so a
    broken template fails loudly at the first request.
    """

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = prompts_dir or PROMPTS_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.prompts_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            keep_trailing_newline=False
        )

    def render_prompt(self, prompt_name: str, **kwargs: Any) -> str:
        """
        Render prompt template with variables.

        Args:
            prompt_name (str): Name of the prompt file (without .md extension)
            **kwargs (Any): Template variables for rendering

        Returns:
            str: Rendered prompt content

        Raises:
            FileNotFoundError: If the prompt file doesn't exist
        """
        try:
            template = self.jinja_env.get_template(f"{prompt_name}.md")
        except TemplateNotFound as e:
            logger.error(f"Prompt file not found: {prompt_name}.md", prompts_dir=str(self.prompts_dir))
            raise FileNotFoundError(f"Prompt file not found: {prompt_name}.md") from e

        return template.render(**kwargs).strip()

    def get_system_prompt(self) -> str:
        """System message framing the model as an email marketing strategist."""
        return self.render_prompt("system")

    def get_subject_suggestions_prompt(self, subject: str, industry: Industry) -> str:
        """
        Get rendered subject suggestion prompt.

        Args:
            subject (str): Subject line under analysis
            industry (Industry): Industry category of the campaign

        Returns:
            str: Rendered user prompt
        """
        return self.render_prompt(
            "subject_suggestions",
            subject=subject,
            industry=INDUSTRY_DISPLAY_NAMES.get(industry, str(industry))
        )


@lru_cache(maxsize=1)
def get_prompt_loader() -> PromptLoader:
    """Shared loader for the packaged prompts directory."""
    return PromptLoader()
