"""
Extractor Tests — HTML page to (title, text).
"""

from tcdecoder.extractor import extract


class TestTitle:

    def test_title_tag(self):
        page = extract("<html><head><title> StreamCo Terms </title></head><body><h1>Other</h1></body></html>")
        assert page.title == "StreamCo Terms"

    def test_falls_back_to_h1(self):
        page = extract("<html><body><h1>Terms of <em>Service</em></h1><p>Hello there.</p></body></html>")
        assert page.title == "Terms of Service"

    def test_no_title(self):
        assert extract("<p>Just text.</p>").title == ""


class TestText:

    def test_script_and_style_excluded(self):
        page = extract(
            "<html><head><style>p { color: red; }</style></head><body>"
            "<script>var fee = 10;</script><p>Visible text.</p>"
            "<noscript>Enable JavaScript</noscript></body></html>"
        )
        assert page.text == "Visible text."

    def test_comments_excluded(self):
        page = extract("<body><p>Before<!-- hidden fee --> after.</p></body>")
        assert "hidden" not in page.text
        assert page.text == "Before after."

    def test_inline_text_preserved(self):
        page = extract("<p>You agree to <strong>binding arbitration</strong> of disputes.</p>")
        assert page.text == "You agree to binding arbitration of disputes."

    def test_blocks_on_separate_lines(self):
        page = extract("<body><h2>Fees</h2><p>A fee applies.</p><ul><li>One</li><li>Two</li></ul></body>")
        assert page.text.split("\n") == ["Fees", "A fee applies.", "One", "Two"]

    def test_whitespace_collapsed(self):
        page = extract("<p>A    late\t\tfee   applies.</p>\n\n\n<p>  Second.  </p>")
        assert page.text == "A late fee applies.\nSecond."

    def test_empty_html(self):
        page = extract("")
        assert page.title == ""
        assert page.text == ""

    def test_text_feeds_scanner(self):
        from tcdecoder.scanner import scan

        page = extract("<p>This agreement automatically renews for $9.99/month unless cancelled.</p>")
        result = scan(page.text)
        assert result.severity == "High"
        assert page.text[result.spans[0].start:result.spans[0].end] == "automatically renews"

    def test_text_after_closing_block_is_separated(self):
        page = extract("<div><p>Late</p>fees apply to every order placed here.</div>")
        assert page.text == "Late\nfees apply to every order placed here."

    def test_text_after_closing_list(self):
        page = extract("<ul><li>No refunds</li></ul>Cancellation requires notice.")
        assert page.text == "No refunds\nCancellation requires notice."

    def test_terms_after_blocks_are_scanned(self):
        from tcdecoder.patterns import RiskType
        from tcdecoder.scanner import scan

        page = extract(
            "<div><p>Late</p>fees apply to every order placed here.</div>"
            "<ul><li>No refunds</li></ul>Cancellation requires notice."
        )
        types = {s.type for s in scan(page.text).spans}
        assert {RiskType.FEES, RiskType.CANCELLATION} <= types

    def test_head_skipped_without_body(self):
        page = extract("<html><head><title>Terms</title></head><p>A fee applies.</p></html>")
        assert page.title == "Terms"
        assert page.text == "A fee applies."
