from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to this file's directory (the project root),
# not the working directory.  This ensures the .env is found even when
# the host process is launched by a browser with a different cwd.
_ENV_FILE = Path(__file__).resolve().parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(_ENV_FILE), case_sensitive=False)

    # ── Detection: Context Window ─────────────────────────────────
    # Ceiling on the concatenated text gathered around a block before
    # the conversational-context patterns run.
    context_window_chars: int = Field(
        default=3000, validation_alias="CONTEXT_WINDOW_CHARS"
    )
    # Preceding element siblings of the block itself.
    context_sibling_limit: int = Field(
        default=5, validation_alias="CONTEXT_SIBLING_LIMIT"
    )
    # Preceding element siblings of the block's parent.
    context_parent_sibling_limit: int = Field(
        default=3, validation_alias="CONTEXT_PARENT_SIBLING_LIMIT"
    )
    # Preceding element siblings of the block's grandparent.
    context_grandparent_sibling_limit: int = Field(
        default=2, validation_alias="CONTEXT_GRANDPARENT_SIBLING_LIMIT"
    )

    # ── Detection: Block Sniffing ─────────────────────────────────
    # Leading lines of the block inspected for a filename comment.
    comment_scan_lines: int = Field(
        default=3, validation_alias="COMMENT_SCAN_LINES"
    )
    # Preceding siblings (per nesting level) inspected for a heading,
    # bold span, or "File:" label.
    markdown_scan_limit: int = Field(
        default=3, validation_alias="MARKDOWN_SCAN_LIMIT"
    )

    # ── Scanning ──────────────────────────────────────────────────
    # CSS selector for candidate blocks.
    block_selector: str = Field(
        default="pre", validation_alias="BLOCK_SELECTOR"
    )
    # Class carried by the confirmation dialog's overlay.  Blocks inside
    # it are the dialog's own preview and are never annotated.
    modal_overlay_class: str = Field(
        default="aic-modal-overlay", validation_alias="MODAL_OVERLAY_CLASS"
    )
    # Class carried by the execute dialog's script preview block.
    exec_preview_class: str = Field(
        default="aic-exec-preview", validation_alias="EXEC_PREVIEW_CLASS"
    )
    # Class and attribute names used when attaching the action affordance.
    affordance_wrapper_class: str = Field(
        default="aic-block", validation_alias="AFFORDANCE_WRAPPER_CLASS"
    )
    affordance_button_class: str = Field(
        default="aic-action", validation_alias="AFFORDANCE_BUTTON_CLASS"
    )

    # ── Host Boundary ─────────────────────────────────────────────
    # Command line used by the client to launch the host process.  Empty
    # means the current interpreter running `-m src.host`.
    host_command: str = Field(
        default="", validation_alias="HOST_COMMAND"
    )
    # Execute timeout applied when a request does not carry one.
    host_default_timeout_secs: int = Field(
        default=30, validation_alias="HOST_DEFAULT_TIMEOUT_SECS"
    )
    # Hard ceiling (seconds) on waiting for a host response, on top of
    # the command's own timeout.
    host_response_grace_secs: int = Field(
        default=10, validation_alias="HOST_RESPONSE_GRACE_SECS"
    )
    # Logging verbosity for the host process (DEBUG, INFO, WARNING).
    host_log_level: str = Field(
        default="INFO", validation_alias="HOST_LOG_LEVEL"
    )


settings = Settings()
