from fmrimatic.utils.naming import normalize_run_tokens, sanitize_label, truncate_text


def test_sanitize_label_drops_disallowed_characters():
    assert sanitize_label("T2 RARE (cor)") == "T2RAREcor"
    assert sanitize_label("EPI_bold-1") == "EPI_bold-1"


def test_sanitize_label_caps_length():
    assert sanitize_label("a" * 80) == "a" * 50
    assert sanitize_label("abcdef", max_length=3) == "abc"


def test_normalize_run_tokens():
    assert normalize_run_tokens(" 5, 6 ,7") == "5 6 7"
    assert normalize_run_tokens("5,,6") == "5 6"
    assert normalize_run_tokens("") == ""


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a_very_long_name", 8) == "a_ver..."
