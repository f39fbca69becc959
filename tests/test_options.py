from shelfkit.options import (
    DEFAULT_OPDS_PORT,
    ExportOptions,
    FontExportOptions,
    Options,
    SendType,
)


def test_set_default_sets_name_format_and_flag():
    opts = ExportOptions()
    opts.set_default("Kindle", "mobi", True)
    assert opts.name == "Kindle"
    assert opts.output_format == "mobi"
    assert opts.default is True


def test_set_default_resets_modified_fields():
    opts = ExportOptions(email="reader@example.com", drop_caps=True)
    opts.font_export_options.append(FontExportOptions(font="a.ttf"))
    opts.export_file_name = "custom"
    opts.set_default("Mail", "epub", False)
    assert opts.email == ""
    assert opts.drop_caps is False
    assert opts.font_export_options == []
    assert opts.export_file_name == ExportOptions.DEFAULT_EXPORT_FILE_NAME


def test_default_templates_match_format():
    opts = ExportOptions()
    assert opts.export_file_name == "%a/%s/%n2 %b"
    assert opts.author_string == "%nf %nm %nl"
    assert opts.book_series_title == "(%abbrs %n2) %b"


def test_send_type_follows_send_to():
    opts = ExportOptions()
    assert opts.send_type is SendType.DEVICE
    opts.send_to = "mail"
    assert opts.send_type is SendType.MAIL


def test_options_default_ports_and_independent_lists():
    first = Options()
    second = Options()
    first.export_options.append(ExportOptions(name="x"))
    assert first.opds_port == DEFAULT_OPDS_PORT
    assert second.export_options == []