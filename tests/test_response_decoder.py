import unittest

from codefusion_reviewer.models import CommentKind, ReviewComment, Severity
from codefusion_reviewer.response_decoder import (
    EMPTY_RESPONSE_MESSAGE,
    coerce_comment,
    collect_response,
    decode_response_stream,
    decode_response_text,
    extract_comment_array,
    strip_code_fence,
)


async def segments_of(*parts):
    for part in parts:
        yield part


async def failing_stream():
    yield '[{"content": "partial"'
    raise RuntimeError("connection reset")


class TestDecodeResponseText(unittest.TestCase):
    def test_fenced_array(self):
        text = '```json\n[{"content":"x","type":"REVIEW"}]\n```'
        self.assertEqual(
            decode_response_text(text),
            [ReviewComment(content="x", kind=CommentKind.REVIEW, severity=Severity.LOW)],
        )

    def test_plain_array_with_file_comments(self):
        text = (
            '[{"content": "Possible null dereference", "type": "SUGGESTION", "severity": "HIGH",'
            ' "filePath": "src/a.ts", "lineNumber": 12},'
            ' {"content": "Looks good overall", "type": "GENERAL"}]'
        )
        comments = decode_response_text(text)
        self.assertEqual(len(comments), 2)
        self.assertEqual(comments[0].file_path, "src/a.ts")
        self.assertEqual(comments[0].line_number, 12)
        self.assertEqual(comments[0].severity, Severity.HIGH)
        self.assertEqual(comments[0].kind, CommentKind.SUGGESTION)
        self.assertIsNone(comments[1].file_path)

    def test_text_without_json_becomes_single_comment(self):
        text = "  The change looks fine, nothing to add.\n"
        comments = decode_response_text(text, CommentKind.REVIEW)
        self.assertEqual(comments, [ReviewComment(
            content="The change looks fine, nothing to add.",
            kind=CommentKind.REVIEW,
            severity=Severity.LOW,
        )])

    def test_empty_response_uses_default_message(self):
        for text in ("", "   \n"):
            comments = decode_response_text(text)
            self.assertEqual(len(comments), 1)
            self.assertEqual(comments[0].content, EMPTY_RESPONSE_MESSAGE)

    def test_object_with_comments_field(self):
        text = '{"summary": "ok", "comments": [{"content": "a"}, {"content": "b"}]}'
        self.assertEqual([c.content for c in decode_response_text(text)], ["a", "b"])

    def test_object_with_other_list_field(self):
        text = '{"findings": [{"content": "c"}]}'
        self.assertEqual([c.content for c in decode_response_text(text)], ["c"])

    def test_array_embedded_in_prose(self):
        text = 'Here is my review [draft]:\n[{"content": "Rename this", "lineNumber": 3}]\nThanks!'
        comments = decode_response_text(text)
        self.assertEqual(len(comments), 1)
        self.assertEqual(comments[0].content, "Rename this")
        self.assertEqual(comments[0].line_number, 3)

    def test_empty_array_yields_no_comments(self):
        self.assertEqual(decode_response_text("[]"), [])

    def test_embedded_array_with_non_object_items(self):
        text = 'Findings:\n[null, "skip me", {"content": "Handle the error"}]\nEnd.'
        self.assertEqual([c.content for c in decode_response_text(text)], ["Handle the error"])

    def test_deeply_nested_response_becomes_single_comment(self):
        text = "[" * 100000
        comments = decode_response_text(text)
        self.assertEqual(len(comments), 1)
        self.assertEqual(comments[0].content, text)

    def test_items_without_content_are_dropped(self):
        text = '[{"content": ""}, {"type": "REVIEW"}, "not an object", {"content": "kept"}]'
        self.assertEqual([c.content for c in decode_response_text(text)], ["kept"])


class TestCoerceComment(unittest.TestCase):
    def test_unknown_type_and_severity_fall_back(self):
        comment = coerce_comment({"content": "x", "type": "NIT", "severity": "BLOCKER"}, CommentKind.REVIEW)
        self.assertEqual(comment.kind, CommentKind.REVIEW)
        self.assertEqual(comment.severity, Severity.LOW)

    def test_enum_values_are_case_insensitive(self):
        comment = coerce_comment({"content": "x", "type": "suggestion", "severity": " critical "})
        self.assertEqual(comment.kind, CommentKind.SUGGESTION)
        self.assertEqual(comment.severity, Severity.CRITICAL)

    def test_line_number_must_be_integral(self):
        self.assertEqual(coerce_comment({"content": "x", "lineNumber": 7.0}).line_number, 7)
        self.assertIsNone(coerce_comment({"content": "x", "lineNumber": 7.5}).line_number)
        self.assertIsNone(coerce_comment({"content": "x", "lineNumber": "7"}).line_number)
        self.assertIsNone(coerce_comment({"content": "x", "lineNumber": True}).line_number)

    def test_blank_file_path_is_dropped(self):
        self.assertIsNone(coerce_comment({"content": "x", "filePath": "  "}).file_path)
        self.assertIsNone(coerce_comment({"content": "x", "filePath": 42}).file_path)
        self.assertEqual(coerce_comment({"content": "x", "filePath": " src/a.ts "}).file_path, "src/a.ts")

    def test_content_is_trimmed(self):
        self.assertEqual(coerce_comment({"content": "  hi \n"}).content, "hi")
        self.assertIsNone(coerce_comment({"content": None}))


class TestHelpers(unittest.TestCase):
    def test_strip_code_fence_only_when_wrapping(self):
        self.assertEqual(strip_code_fence("```\n[1]\n```"), "[1]")
        self.assertEqual(strip_code_fence("intro\n```json\n[1]\n```"), "intro\n```json\n[1]\n```")

    def test_extract_comment_array_returns_none_without_array(self):
        self.assertIsNone(extract_comment_array('{"content": "x"}'))
        self.assertIsNone(extract_comment_array("no json here"))


class TestStreams(unittest.IsolatedAsyncioTestCase):
    async def test_collect_response_concatenates_segments(self):
        text = await collect_response(segments_of("[{", '"content": ', None, '"x"}]'))
        self.assertEqual(text, '[{"content": "x"}]')

    async def test_decode_stream(self):
        comments = await decode_response_stream(segments_of("```json\n", '[{"content": "y"}]', "\n```"))
        self.assertEqual([c.content for c in comments], ["y"])

    async def test_deeply_nested_stream_does_not_raise(self):
        comments = await decode_response_stream(segments_of("[" * 50000, "]" * 50000))
        self.assertEqual(len(comments), 1)
        self.assertEqual(comments[0].severity, Severity.LOW)

    async def test_failing_stream_becomes_error_comment(self):
        comments = await decode_response_stream(failing_stream())
        self.assertEqual(len(comments), 1)
        self.assertEqual(comments[0].kind, CommentKind.GENERAL)
        self.assertEqual(comments[0].severity, Severity.LOW)
        self.assertIn("connection reset", comments[0].content)


if __name__ == '__main__':
    unittest.main()
