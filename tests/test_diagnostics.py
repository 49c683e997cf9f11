"""
Diagnostics Tests
=================

Run tests with:
    pytest tests/test_diagnostics.py -v
"""

import pytest

from objj_sdk.errors import SourceLocation
from objj_sdk.objj import builder as b
from objj_sdk.objj.diagnostics import Diagnostics, Issue, Severity
from objj_sdk.objj.errors import DuplicateDefinitionError, TooManyErrorsError

SOURCE = "var x;\nfoo bar;\n"


def _at(line, column):
    return SourceLocation("a.j", line, column)


@pytest.fixture
def diagnostics():
    return Diagnostics(source=SOURCE, filename="a.j")


class TestIssueFormatting:
    def test_source_line_and_caret(self, diagnostics):
        issue = diagnostics.error(_at(2, 5), "bad thing")
        assert str(issue) == "a.j:2:5: error: bad thing\n    foo bar;\n        ^"

    def test_without_location(self):
        assert str(Issue(Severity.WARNING, "careful")) == "warning: careful"

    def test_notes_follow_the_issue(self, diagnostics):
        diagnostics.error(_at(2, 1), "duplicate")
        diagnostics.note(_at(1, 1), "first here")
        [issue] = diagnostics.issues
        assert str(issue).endswith("a.j:1:1: note: first here\n    var x;\n    ^")

    def test_node_anchor(self, diagnostics):
        node = b.ident("x", at=(1, 5))
        issue = diagnostics.warning(node, "hmm")
        assert issue.node is node
        assert issue.location == node.location
        assert issue.source_line == "var x;"


class TestRecording:
    def test_duplicates_are_dropped(self, diagnostics):
        assert diagnostics.warning(_at(1, 1), "same") is not None
        assert diagnostics.warning(_at(1, 1), "same") is None
        assert diagnostics.note(_at(2, 1), "lost") is None
        assert diagnostics.warning_count() == 1
        assert diagnostics.issues[0].notes == []

    def test_note_without_issue(self, diagnostics):
        assert diagnostics.note(_at(1, 1), "orphan") is None
        assert diagnostics.issues == []

    def test_ignore_warnings(self):
        diagnostics = Diagnostics(ignore_warnings=True)
        assert diagnostics.warning(None, "w") is None
        assert diagnostics.error(None, "e") is not None
        assert diagnostics.has_errors()

    def test_should_warn_about(self):
        diagnostics = Diagnostics(warnings={"debugger": False, "unknown-types": True})
        assert not diagnostics.should_warn_about("debugger")
        assert diagnostics.should_warn_about("unknown-types")
        assert diagnostics.should_warn_about("implicit-globals")
        assert not diagnostics.should_warn_about("parameter-types")
        assert not Diagnostics(ignore_warnings=True).should_warn_about("implicit-globals")

    def test_too_many_errors(self):
        diagnostics = Diagnostics(max_errors=1)
        diagnostics.error(None, "one")
        with pytest.raises(TooManyErrorsError, match=r"too many errors \(>1\)"):
            diagnostics.error(None, "two")
        assert diagnostics.error_count() == 2

    def test_compile_error_with_notes(self, diagnostics):
        error = DuplicateDefinitionError("class", "Foo", _at(2, 1), _at(1, 1))
        issue = diagnostics.add_compile_error(error)
        assert issue.message == error.message
        assert issue.source_line == "foo bar;"
        assert [note.message for note in issue.notes] == ["previous definition is here"]


class TestReport:
    def test_summary_counts(self, diagnostics):
        diagnostics.error(None, "e")
        diagnostics.warning(None, "w1")
        diagnostics.warning(None, "w2")
        report = diagnostics.format_report()
        assert report == "error: e\n\nwarning: w1\n\nwarning: w2\n\n1 error, 2 warnings"

    def test_empty_report(self):
        assert Diagnostics().format_report() == "0 errors, 0 warnings"
