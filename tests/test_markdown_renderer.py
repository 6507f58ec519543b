"""
Tests for rendering analysis text as HTML.
"""

from markupsafe import Markup
from nutrition_advisor.services.markdown_renderer import render_markdown


class TestRenderMarkdown:

    def test_plain_text(self):
        assert render_markdown("Calories: 250") == Markup("<p>Calories: 250</p>")

    def test_returns_markup(self):
        assert isinstance(render_markdown("text"), Markup)

    def test_emphasis_and_lists(self):
        html = str(render_markdown("**Total**: 650 kcal\n\n- Rice: 200 kcal\n- Chicken: 450 kcal"))
        assert "<strong>Total</strong>" in html
        assert "<li>Rice: 200 kcal</li>" in html
        assert "<ul>" in html

    def test_headings(self):
        html = str(render_markdown("## Macronutrients\n\nProtein: 30 g"))
        assert "<h2>Macronutrients</h2>" in html

    def test_tables(self):
        text = "| Food | kcal |\n| --- | --- |\n| Apple | 95 |"
        html = str(render_markdown(text))
        assert "<table>" in html
        assert "<td>Apple</td>" in html

    def test_raw_html_is_escaped(self):
        html = str(render_markdown("<script>alert(1)</script> and <b>bold</b>"))
        assert "<script>" not in html
        assert "<b>" not in html
        assert "&lt;script&gt;" in html

    def test_empty_text(self):
        assert render_markdown(None) == Markup("")
        assert render_markdown("") == Markup("")
        assert render_markdown("   \n") == Markup("")

    def test_blockquote(self):
        html = str(render_markdown("> Tip: eat greens"))
        assert "<blockquote>" in html
        assert "<p>Tip: eat greens</p>" in html

    def test_code_span_and_ampersand_escaped(self):
        html = str(render_markdown("Keep sugar `<5g` per serving & drink water"))
        assert "<code>&lt;5g</code>" in html
        assert "&amp; drink water" in html

    def test_fenced_code(self):
        html = str(render_markdown("```\nprotein <= 30g\n```"))
        assert "<code>" in html
        assert "protein &lt;= 30g" in html

    def test_script_links_are_neutralised(self):
        html = str(render_markdown("[more](javascript:alert(1)) and ![img](data:image/png;base64,AAAA)"))
        assert "javascript:" not in html
        assert "data:image" not in html
        assert 'href="#"' in html
        assert 'src="#"' in html

    def test_regular_links_kept(self):
        html = str(render_markdown("[USDA](https://fdc.nal.usda.gov)"))
        assert 'href="https://fdc.nal.usda.gov"' in html
