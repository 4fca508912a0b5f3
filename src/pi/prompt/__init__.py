"""pi-prompt: raw-mode multi-line terminal prompt with paste placeholders and @file completion."""

# Autocomplete
from pi.prompt.autocomplete import (
    AutocompleteCoordinator,
    AutocompleteState,
    extract_path_and_query,
    find_trigger,
    live_query,
)

# Configuration
from pi.prompt.config import PromptConfig, load_config

# Document model
from pi.prompt.document import Document

# Editor session
from pi.prompt.editor import EditorOptions, EditorState, MultiLineEditor, expand_file_references

# File search
from pi.prompt.file_search import FileSearcher, FindFileSearcher, WalkFileSearcher

# Paste pipeline
from pi.prompt.paste import PasteRegistry, format_token, is_large_paste, markup_to_text, normalize_pasted_text

# Rendering
from pi.prompt.render import EditorView, Frame, Renderer, RenderState, build_frame, physical_rows

# Terminal
from pi.prompt.terminal import RawTerminal, Terminal

# Theme
from pi.prompt.theme import PromptTheme, default_theme, plain_theme

# Utilities
from pi.prompt.utils import strip_ansi, visible_width

__all__ = [
    # Autocomplete
    "AutocompleteCoordinator",
    "AutocompleteState",
    "extract_path_and_query",
    "find_trigger",
    "live_query",
    # Configuration
    "PromptConfig",
    "load_config",
    # Document model
    "Document",
    # Editor session
    "EditorOptions",
    "EditorState",
    "MultiLineEditor",
    "expand_file_references",
    # File search
    "FileSearcher",
    "FindFileSearcher",
    "WalkFileSearcher",
    # Paste pipeline
    "PasteRegistry",
    "format_token",
    "is_large_paste",
    "markup_to_text",
    "normalize_pasted_text",
    # Rendering
    "EditorView",
    "Frame",
    "RenderState",
    "Renderer",
    "build_frame",
    "physical_rows",
    # Terminal
    "RawTerminal",
    "Terminal",
    # Theme
    "PromptTheme",
    "default_theme",
    "plain_theme",
    # Utilities
    "strip_ansi",
    "visible_width",
]
