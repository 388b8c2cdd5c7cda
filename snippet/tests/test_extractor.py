"""
Integration tests for extractor.py

Tests snippet extraction from the C# fixtures end to end, the extractor
factory and batch extraction.
"""

import os
import tempfile
import unittest
from pathlib import Path

from snippet.errors import (
    InvalidPatternError,
    MemberNotFoundError,
    ParseError,
    SnippetExtractionError,
    SnippetFileNotFoundError,
)
from snippet.extractor import (
    CSharpSnippetExtractor,
    DefaultSnippetExtractor,
    ExtractionStats,
    create_extractor,
    detect_language,
    extract_many,
)
from snippet.settings import ExtractionRequest, ExtractorSettings

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FOO_STRING = "public void Foo(string message)\n{\n    Console.WriteLine(message);\n}"
FOO_STRING_INT = "public int Foo(string message, int count)\n{\n    return count;\n}"


class TestExtractorInit(unittest.TestCase):
    """Test extractor construction and path resolution."""

    def test_no_source_roots(self):
        with self.assertRaises(ValueError):
            CSharpSnippetExtractor([])
        with self.assertRaises(ValueError):
            CSharpSnippetExtractor(None)

    def test_blank_file_path(self):
        """Test empty file paths are rejected."""
        extractor = CSharpSnippetExtractor([FIXTURES_DIR])
        for file_path in (None, "", "   "):
            with self.subTest(file_path=file_path):
                with self.assertRaises(SnippetFileNotFoundError):
                    extractor.extract(file_path, "")

    def test_missing_file(self):
        extractor = CSharpSnippetExtractor([FIXTURES_DIR])
        with self.assertRaises(SnippetFileNotFoundError) as ctx:
            extractor.extract("Missing.cs", "Foo")
        self.assertIsInstance(ctx.exception, FileNotFoundError)
        self.assertEqual(ctx.exception.message, "Cannot find file")
        self.assertEqual(ctx.exception.file_path, "Missing.cs")

    def test_path_outside_root(self):
        """Test relative paths cannot escape their source root."""
        extractor = CSharpSnippetExtractor([FIXTURES_DIR])
        with self.assertRaises(SnippetFileNotFoundError):
            extractor.extract("../test_extractor.py", "")

    def test_first_root_wins(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            Path(tmpdir, "Sample.cs").write_text("class Shadow { }\n", encoding="utf-8")
            extractor = CSharpSnippetExtractor([tmpdir, FIXTURES_DIR])
            self.assertEqual(extractor.extract("Sample.cs", "Shadow").content, "class Shadow { }")

            extractor = CSharpSnippetExtractor([FIXTURES_DIR, tmpdir])
            with self.assertRaises(MemberNotFoundError):
                extractor.extract("Sample.cs", "Shadow")


class TestExtractSnippet(unittest.TestCase):
    """Test extraction from Sample.cs, sharing one extractor like a real run."""

    @classmethod
    def setUpClass(cls):
        cls.extractor = CSharpSnippetExtractor([FIXTURES_DIR])

    def extract(self, pattern, file_name="Sample.cs"):
        return self.extractor.extract(file_name, pattern).content

    def test_whole_file(self):
        """Test empty patterns return the file unchanged, without BOM."""
        expected = (FIXTURES_DIR / "AnyClass.cs").read_text(encoding="utf-8-sig")
        for pattern in ("", None, "   "):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern, "AnyClass.cs"), expected)

    def test_empty_file(self):
        self.assertEqual(self.extract("", "Empty.cs"), "")

    def test_method_signature(self):
        for pattern in (
            "NS.OneClassSomewhere.Foo(string)",
            "OneClassSomewhere.Foo(string)",
            "Foo(string)",
            "(string)",
        ):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), FOO_STRING)
        self.assertEqual(self.extract("Foo(string, int)"), FOO_STRING_INT)

    def test_method_overloads(self):
        """Test overloads are joined by one blank line."""
        expected = FOO_STRING + "\n\n" + FOO_STRING_INT
        for pattern in ("NS.OneClassSomewhere.Foo", "OneClassSomewhere.Foo", "Foo"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), expected)

    def test_property_and_accessors(self):
        self.assertEqual(
            self.extract("SubClass.WhateverProperty"),
            "public string WhateverProperty\n"
            "{\n"
            '    get { return "whatever"; }\n'
            "    set { Console.WriteLine(value); }\n"
            "}",
        )
        self.assertEqual(self.extract("WhateverProperty.get"), 'get { return "whatever"; }')
        self.assertEqual(
            self.extract("NS.OneClassSomewhere.SubClass.WhateverProperty.set"),
            "set { Console.WriteLine(value); }",
        )

    def test_bare_accessors_aggregate(self):
        self.assertEqual(
            self.extract("get"),
            'get { return "whatever"; }\n\nget { return index; }',
        )
        self.assertEqual(
            self.extract("set"),
            "set { Console.WriteLine(value); }\n\nset { Console.WriteLine(key); }",
        )

    def test_indexer(self):
        expected = (
            "public int this[string key, int index]\n"
            "{\n"
            "    get { return index; }\n"
            "    set { Console.WriteLine(key); }\n"
            "}"
        )
        for pattern in ("NS2.NS2.NS3.D.[string,int]", "NS2.NS3.D.[string,int]", "D.[string,int]", "[string,int]"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), expected)
        self.assertEqual(self.extract("[string, int].set"), "set { Console.WriteLine(key); }")

    def test_event(self):
        self.assertEqual(
            self.extract("D.Event"),
            "public event EventHandler Event\n{\n    add { }\n    remove { }\n}",
        )
        for pattern in ("NS2.NS2.NS3.D.Event.add", "Event.add", "add"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), "add { }")
        self.assertEqual(self.extract("remove"), "remove { }")

    def test_constructor_and_destructor(self):
        for pattern in ("NS2.NS2.NS3.B.<Constructor>", "B.<Constructor>", "<Constructor>"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), "public B()\n{\n}")
        self.assertEqual(self.extract("B.<Destructor>"), "~B()\n{\n}")

    def test_generics(self):
        self.assertEqual(
            self.extract("C{T, U}.CMethod{X, Y}"),
            "public void CMethod<X, Y>(X x, Y y)\n{\n}",
        )
        self.assertTrue(self.extract("NS2.NS3.C{T, U}").startswith("public class C<T, U>\n{\n"))

    def test_interface(self):
        self.assertEqual(
            self.extract("I"),
            "public interface I\n{\n    void InterfaceMethod(bool flag, string text, int count);\n}",
        )
        self.assertEqual(
            self.extract("(bool, string, int)"),
            "void InterfaceMethod(bool flag, string text, int count);",
        )

    def test_aggregated_classes(self):
        first = "public class A\n{\n}"
        second = "public class A\n{\n    public void Method()\n    {\n    }\n}"
        self.assertEqual(self.extract("A"), first + "\n\n" + second)
        self.assertEqual(self.extract("NS2.NS3.A"), first + "\n\n" + second)
        self.assertEqual(self.extract("NS.NS2.NS3.A"), first)
        self.assertEqual(self.extract("NS2.NS2.NS3.A"), second)

    def test_namespace(self):
        snippet = self.extract("NS")
        self.assertTrue(snippet.startswith("namespace NS\n{\n    public class OneClassSomewhere"))
        self.assertTrue(snippet.endswith("\n}"))
        self.assertNotIn("namespace NS2\n", snippet)

    def test_idempotent(self):
        """Test repeated extraction is served from the cache unchanged."""
        first = self.extract("Foo")
        second = self.extract("Foo")
        self.assertEqual(first, second)
        self.assertIn(Path(FIXTURES_DIR / "Sample.cs").resolve(), self.extractor.cached_files)

    def test_member_not_found(self):
        with self.assertRaises(MemberNotFoundError) as ctx:
            self.extract("DoesntExist")
        self.assertEqual(ctx.exception.message, "Cannot find member")
        self.assertEqual(ctx.exception.pattern, "DoesntExist")
        self.assertIn("Cannot find member", str(ctx.exception))

    def test_invalid_rule(self):
        with self.assertRaises(InvalidPatternError) as ctx:
            self.extract("abc abc(abc")
        self.assertTrue(str(ctx.exception).startswith("Invalid extraction rule"))
        self.assertEqual(ctx.exception.file_path, "Sample.cs")

    def test_failure_leaves_cache_usable(self):
        with self.assertRaises(SnippetExtractionError):
            self.extract("DoesntExist")
        self.assertEqual(self.extract("Foo(string)"), FOO_STRING)

    def test_snippet_metadata(self):
        snippet = self.extractor.extract("Sample.cs", "Foo(string)")
        self.assertEqual(snippet.file_path, "Sample.cs")
        self.assertEqual(snippet.pattern, "Foo(string)")
        self.assertEqual(str(snippet), FOO_STRING)


class TestExtractionModes(unittest.TestCase):
    """Test content-only and block-structure-only extraction on Options.cs."""

    @classmethod
    def setUpClass(cls):
        cls.extractor = CSharpSnippetExtractor([FIXTURES_DIR])

    def extract(self, pattern):
        return self.extractor.extract("Options.cs", pattern).content

    def test_block_structure(self):
        self.assertEqual(self.extract("=Options"), "public class Options\n{\n    // ...\n}")
        self.assertEqual(self.extract("=Options.Method"), "public int Method()\n{\n    // ...\n}")
        self.assertEqual(self.extract("=EmptyMethod"), "public void EmptyMethod()\n{\n    // ...\n}")
        self.assertEqual(
            self.extract("=Options.Event"),
            "public event EventHandler Event\n{\n    // ...\n}",
        )
        for pattern in ("=Options.Event.add", "=Event.add", "=add"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), "add\n{\n    // ...\n}")

    def test_block_structure_keeps_doc_comment(self):
        self.assertEqual(
            self.extract("=Options.Property"),
            "/// <summary>\n"
            "/// Gets the value.\n"
            "/// </summary>\n"
            "public string Property\n"
            "{\n"
            "    // ...\n"
            "}",
        )

    def test_detached_comment_excluded(self):
        self.assertEqual(self.extract("EmptyMethod"), "public void EmptyMethod()\n{\n}")

    def test_content_only(self):
        self.assertEqual(self.extract("-Options.Method"), "int value = 42;\nreturn value;")
        self.assertEqual(self.extract("-Options.Property"), 'get { return "value"; }')
        self.assertEqual(
            self.extract("-Options.Event"),
            'add\n{\n    Console.WriteLine("add");\n}\nremove { }',
        )
        for pattern in ("-Options.Event.add", "-Event.add", "-add"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), 'Console.WriteLine("add");')

    def test_content_only_class(self):
        snippet = self.extract("-Options")
        self.assertTrue(snippet.startswith("public int Method()\n{\n    int value = 42;"))
        self.assertTrue(snippet.endswith("    remove { }\n}"))

    def test_empty_content(self):
        for pattern in ("-remove", "-EmptyMethod"):
            with self.subTest(pattern=pattern):
                self.assertEqual(self.extract(pattern), "")


class TestNeedCleanup(unittest.TestCase):
    """Test irregular indentation is normalized."""

    def test_class(self):
        extractor = CSharpSnippetExtractor([FIXTURES_DIR])
        self.assertEqual(
            extractor.extract("NeedCleanup.cs", "NeedCleanup").content,
            "    public class NeedCleanup\n"
            "{\n"
            "        public void Cleanup()\n"
            "            {\n"
            "            }\n"
            "}",
        )

    def test_whole_file_untouched(self):
        extractor = CSharpSnippetExtractor([FIXTURES_DIR])
        expected = (FIXTURES_DIR / "NeedCleanup.cs").read_text(encoding="utf-8")
        self.assertEqual(extractor.extract("NeedCleanup.cs", "").content, expected)


class TestModernSyntax(unittest.TestCase):
    """Test records, event fields and init accessors resolve."""

    @classmethod
    def setUpClass(cls):
        cls.extractor = CSharpSnippetExtractor([FIXTURES_DIR])

    def extract(self, pattern):
        return self.extractor.extract("Modern.cs", pattern).content

    def test_record(self):
        self.assertEqual(self.extract("Point"), "public record Point(int X, int Y);")

    def test_event_field(self):
        expected = "public event EventHandler Changed, Saved;"
        self.assertEqual(self.extract("Settings.Changed"), expected)
        self.assertEqual(self.extract("Saved"), expected)

    def test_init_accessor(self):
        self.assertEqual(self.extract("Name.init"), "init;")

    def test_file_scoped_namespace_qualification(self):
        self.assertEqual(
            self.extract("Docs.Samples.Modern.Settings.Name"),
            "public string Name { get; init; }",
        )


class TestSignatureEdgeCases(unittest.TestCase):
    """Test params arrays and braces inside expression bodies."""

    SOURCE = (
        "class X\n"
        "{\n"
        "    void U(string[] a, params int[] b)\n"
        "    {\n"
        "    }\n"
        "\n"
        '    string M() => "}" + "{";\n'
        "}\n"
    )

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        Path(self.tmpdir.name, "X.cs").write_text(self.SOURCE, encoding="utf-8")
        self.extractor = CSharpSnippetExtractor([self.tmpdir.name])

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_params_array_counts_as_parameter(self):
        self.assertEqual(
            self.extractor.extract("X.cs", "U(string[], int[])").content,
            "void U(string[] a, params int[] b)\n{\n}",
        )
        with self.assertRaises(MemberNotFoundError):
            self.extractor.extract("X.cs", "U(string[])")

    def test_content_only_with_braces_in_strings(self):
        self.assertEqual(self.extractor.extract("X.cs", "-M").content, '";')


class TestFactory(unittest.TestCase):
    """Test language detection and extractor creation."""

    def test_detect_language(self):
        self.assertEqual(detect_language("Foo.cs"), "csharp")
        self.assertEqual(detect_language("dir/Foo.CS"), "csharp")
        self.assertIsNone(detect_language("README.md"))

    def test_create_csharp(self):
        settings = ExtractorSettings(strict_parsing=True, block_ellipsis="...")
        extractor = create_extractor("CSharp", [FIXTURES_DIR], settings)
        self.assertIsInstance(extractor, CSharpSnippetExtractor)
        self.assertTrue(extractor.strict_parsing)
        self.assertEqual(extractor.block_ellipsis, "...")

    def test_create_default(self):
        for language in (None, "", "xml"):
            with self.subTest(language=language):
                extractor = create_extractor(language, [FIXTURES_DIR])
                self.assertIs(type(extractor), DefaultSnippetExtractor)

    def test_default_extractor_ignores_pattern(self):
        extractor = DefaultSnippetExtractor([FIXTURES_DIR])
        expected = (FIXTURES_DIR / "Options.cs").read_text(encoding="utf-8")
        self.assertEqual(extractor.extract("Options.cs", "Options").content, expected)


class TestExtractMany(unittest.TestCase):
    """Test batch extraction and statistics."""

    def setUp(self):
        self.settings = ExtractorSettings(source_roots=(str(FIXTURES_DIR),))

    def test_stats_defaults(self):
        stats = ExtractionStats()
        self.assertEqual(stats.to_dict(), {
            "requests_processed": 0,
            "requests_failed": 0,
            "snippets_extracted": 0,
            "files_parsed": 0,
        })
        self.assertIn("processed=0", str(stats))

    def test_batch_collects_failures(self):
        """Test failures are recorded without stopping the batch."""
        requests = [
            ExtractionRequest("Sample.cs", "Foo(string)"),
            ExtractionRequest("Sample.cs", "DoesntExist"),
            ExtractionRequest("Missing.cs", "Foo"),
            ExtractionRequest("Options.cs", "=Options"),
            ExtractionRequest("Sample.cs", "abc abc(abc"),
        ]
        batch = extract_many(requests, self.settings)

        self.assertEqual([r.ok for r in batch.results], [True, False, False, True, False])
        self.assertEqual(batch.results[0].snippet.content, FOO_STRING)
        self.assertIsInstance(batch.results[1].error, MemberNotFoundError)
        self.assertIsInstance(batch.results[2].error, SnippetFileNotFoundError)
        self.assertIsInstance(batch.results[4].error, InvalidPatternError)
        self.assertEqual(len(batch.failures), 3)
        self.assertEqual(batch.stats.requests_processed, 5)
        self.assertEqual(batch.stats.requests_failed, 3)
        self.assertEqual(batch.stats.snippets_extracted, 2)
        self.assertEqual(batch.stats.files_parsed, 2)

        record = batch.results[1].to_dict()
        self.assertEqual(record["error_type"], "MemberNotFoundError")
        self.assertIsNone(record["content"])

    def test_batch_stops_on_error(self):
        requests = [ExtractionRequest("Sample.cs", "DoesntExist"), ExtractionRequest("Sample.cs", "Foo")]
        with self.assertRaises(MemberNotFoundError):
            extract_many(requests, self.settings, continue_on_error=False)

    def test_non_csharp_request(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            Path(tmpdir, "notes.txt").write_text("plain text\n", encoding="utf-8")
            settings = ExtractorSettings(source_roots=(tmpdir,))
            batch = extract_many([ExtractionRequest("notes.txt", "Anything", language="text")], settings)
            self.assertEqual(batch.results[0].snippet.content, "plain text\n")
            self.assertEqual(os.path.basename(batch.results[0].snippet.file_path), "notes.txt")

    def test_undecodable_file_is_request_scoped(self):
        """Test a non-UTF-8 file fails its own request only."""
        with tempfile.TemporaryDirectory() as tmpdir:
            Path(tmpdir, "Bad.cs").write_bytes(b"class A { }\n// \xff\xfe\n")
            Path(tmpdir, "Good.cs").write_text("class B { }\n", encoding="utf-8")
            settings = ExtractorSettings(source_roots=(tmpdir,))
            requests = [
                ExtractionRequest("Bad.cs", ""),
                ExtractionRequest("Bad.cs", "A"),
                ExtractionRequest("Good.cs", ""),
            ]
            batch = extract_many(requests, settings)

            self.assertEqual([r.ok for r in batch.results], [False, False, True])
            self.assertIsInstance(batch.results[0].error, ParseError)
            self.assertIsInstance(batch.results[1].error, ParseError)
            self.assertEqual(batch.results[2].snippet.content, "class B { }\n")
            self.assertEqual(batch.stats.requests_failed, 2)


if __name__ == "__main__":
    unittest.main()
