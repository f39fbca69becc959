"""Application and export settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_OPDS_PORT = 8080
DEFAULT_PROXY_PORT = 8080


class SendType(Enum):
    """Where exported books are sent."""

    DEVICE = 0
    MAIL = 1


@dataclass
class ToolsOptions:
    """An external tool that can be applied to exported books."""

    path: str = ""
    args: str = ""
    ext: str = ""


@dataclass
class FontExportOptions:
    """A font embedded into converted books."""

    font: str = ""
    font_b: str = ""
    font_i: str = ""
    font_bi: str = ""
    font_size: int = 100
    use: bool = False
    tag: int = 0


@dataclass
class ExportOptions:
    """One named export profile."""

    DEFAULT_EXPORT_FILE_NAME = "%a/%s/%n2 %b"
    DEFAULT_DROPCAPS_FONT = "sangha.ttf"
    DEFAULT_AUTHOR_NAME = "%nf %nm %nl"
    DEFAULT_COVER_LABEL = "%abbrs - %n2"
    DEFAULT_BOOK_TITLE = "(%abbrs %n2) %b"

    name: str = ""
    current_tool: str = ""

    email: str = ""
    email_from: str = ""
    email_subject: str = ""
    email_server: str = ""
    email_user: str = ""
    email_password: str = ""
    device_path: str = ""
    export_file_name: str = DEFAULT_EXPORT_FILE_NAME
    user_css: str = ""
    output_format: str = ""
    book_series_title: str = DEFAULT_BOOK_TITLE
    author_string: str = DEFAULT_AUTHOR_NAME
    cover_label: str = DEFAULT_COVER_LABEL
    send_to: str = "device"

    email_server_port: int = 0
    email_pause: int = 0
    max_caption_level: int = 0
    content_placement: int = 0
    foot_notes: int = 0
    email_connection_type: int = 0
    hyphenate: int = 0
    vignette: int = 0
    default: bool = False
    original_file_name: bool = False
    postprocessing_copy: bool = False
    drop_caps: bool = False
    join_series: bool = False
    use_user_css: bool = False
    split_file: bool = False
    break_after_capture: bool = False
    annotation: bool = False
    ask_path: bool = False
    transliteration: bool = False
    remove_personal: bool = False
    repair_cover: bool = False
    ml_toc: bool = False
    seria_translit: bool = False
    author_translit: bool = False
    create_cover: bool = False
    create_cover_always: bool = False
    add_cover_label: bool = False
    font_export_options: list[FontExportOptions] = field(default_factory=list)

    def set_default(self, name, output_format, default):
        """Reset the profile to default values under a new name and format."""
        fresh = ExportOptions(name=name, output_format=output_format, default=default)
        self.__dict__.update(fresh.__dict__)

    @property
    def send_type(self) -> SendType:
        """The destination kind selected by :attr:`send_to`."""
        return SendType.DEVICE if self.send_to == "device" else SendType.MAIL


@dataclass
class Options:
    """Global application settings."""

    alphabet_name: str = ""
    ui_language_name: str = ""
    database_path: str = ""
    opds_user: str = ""
    opds_password: str = ""
    proxy_host: str = ""
    proxy_user: str = ""
    proxy_password: str = ""

    http_export: int = 0
    opds_port: int = DEFAULT_OPDS_PORT
    opds_books_per_page: int = 0
    proxy_port: int = DEFAULT_PROXY_PORT
    proxy_type: int = 0

    icon_tray: int = 0
    tray_color: int = 0
    show_deleted: bool = False
    use_tag: bool = False
    show_splash: bool = False
    store_position: bool = False
    close_dlg_after_export: bool = False
    uncheck_after_export: bool = False
    extended_symbols: bool = False
    opds_enable: bool = False
    opds_show_cover: bool = False
    opds_show_annotation: bool = False
    opds_need_password: bool = False

    applications: dict[str, str] = field(default_factory=dict)
    tools: dict[str, ToolsOptions] = field(default_factory=dict)
    export_options: list[ExportOptions] = field(default_factory=list)