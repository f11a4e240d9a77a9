import io
import unittest

from tests import _bootstrap  # noqa: F401
from cppblocks.blocks import Block, BlockParser, parse_source, read_blocks
from cppblocks.diag import ExpressionFormatError, StructuralFormatError
from cppblocks.logic import TRUE, Conjunction, Disjunction, Negation, Variable
from cppblocks.options import ExtractorOptions, InvalidConditionHandling

A = Variable("A")
B = Variable("B")
C = Variable("C")


def _blocks(source: str, options: ExtractorOptions | None = None) -> list[Block]:
    return parse_source(source, source_file="test.c", options=options)


def _lines(block: Block) -> tuple[int, int]:
    return block.line_start, block.line_end


class LineNumberTests(unittest.TestCase):
    def test_simple_block(self) -> None:
        blocks = _blocks("#if defined(A)\nint x;\n#endif\n")
        self.assertEqual(len(blocks), 1)
        self.assertEqual(_lines(blocks[0]), (1, 2))
        self.assertEqual(blocks[0].condition, A)
        self.assertEqual(blocks[0].presence_condition, A)
        self.assertEqual(blocks[0].source_file, "test.c")

    def test_empty_block(self) -> None:
        blocks = _blocks("#if defined(A)\n#endif\n")
        self.assertEqual(_lines(blocks[0]), (1, 1))

    def test_nested_blocks(self) -> None:
        blocks = _blocks("#if defined(A)\n\n#if defined(B)\n\n#endif\n\n#endif\n")
        self.assertEqual(len(blocks), 1)
        outer = blocks[0]
        self.assertEqual(_lines(outer), (1, 6))
        self.assertEqual(len(outer.children), 1)
        inner = outer.children[0]
        self.assertEqual(_lines(inner), (3, 4))
        self.assertEqual(inner.condition, B)
        self.assertEqual(inner.presence_condition, Conjunction(A, B))

    def test_pseudo_block(self) -> None:
        blocks = _blocks("x;\n#if defined(A)\n#endif\ny;\n")
        self.assertEqual(len(blocks), 1)
        root = blocks[0]
        self.assertEqual(_lines(root), (1, 5))
        self.assertEqual(root.condition, TRUE)
        self.assertEqual(root.presence_condition, TRUE)
        self.assertEqual([_lines(child) for child in root.children], [(2, 2)])

    def test_pseudo_block_with_several_children(self) -> None:
        source = "#include <a.h>\n#if defined(A)\na;\n#endif\n\n#ifdef B\nb;\n#endif\n"
        root = _blocks(source)[0]
        self.assertEqual(_lines(root), (1, 9))
        self.assertEqual([_lines(child) for child in root.children], [(2, 3), (6, 7)])
        self.assertEqual(root.children[1].condition, B)

    def test_pseudo_block_ends_after_last_logical_line(self) -> None:
        blocks = _blocks("x;\n#define A \\\n  1\n")
        self.assertEqual(_lines(blocks[0]), (1, 3))
        self.assertEqual(blocks[0].children, ())

    def test_continued_include_hides_following_directive(self) -> None:
        blocks = _blocks("#include <a.h> // note \\\n#if defined(A)\nx;\n")
        self.assertEqual(len(blocks), 1)
        self.assertEqual(_lines(blocks[0]), (1, 4))
        self.assertEqual(blocks[0].condition, TRUE)
        self.assertEqual(blocks[0].children, ())

    def test_lone_hash_is_content(self) -> None:
        self.assertEqual(_lines(_blocks(" # \n")[0]), (1, 2))

    def test_plain_content(self) -> None:
        self.assertEqual(_lines(_blocks("something\n\nsomething\n")[0]), (1, 4))

    def test_no_pseudo_block_without_content(self) -> None:
        self.assertEqual(_blocks("\n\n"), [])
        self.assertEqual(_blocks(""), [])

    def test_pseudo_block_disabled(self) -> None:
        blocks = _blocks("x;\n#if defined(A)\n#endif\n", ExtractorOptions(add_pseudo_block=False))
        self.assertEqual([_lines(block) for block in blocks], [(2, 2)])

    def test_continuation_inside_condition(self) -> None:
        blocks = _blocks("#if defined(A) && \\\n    defined(B)\nx;\n#endif\n")
        self.assertEqual(_lines(blocks[0]), (1, 3))
        self.assertEqual(blocks[0].condition, Conjunction(A, B))


class ConditionChainTests(unittest.TestCase):
    def test_if_elif_elif_else(self) -> None:
        source = (
            "#if defined(A)\na;\n"
            "#elif defined(B)\nb;\n"
            "#elif defined(C)\nc;\n"
            "#else\nd;\n"
            "#endif\n"
        )
        blocks = _blocks(source)
        self.assertEqual([_lines(block) for block in blocks], [(1, 2), (3, 4), (5, 6), (7, 8)])
        self.assertEqual(
            [block.condition for block in blocks],
            [
                A,
                Conjunction(Negation(A), B),
                Conjunction(Conjunction(Negation(A), Negation(B)), C),
                Conjunction(Conjunction(Negation(A), Negation(B)), Negation(C)),
            ],
        )
        for block in blocks:
            self.assertEqual(block.presence_condition, block.condition)

    def test_if_else(self) -> None:
        blocks = _blocks("#ifdef A\n#else\n#endif\n")
        self.assertEqual([block.condition for block in blocks], [A, Negation(A)])

    def test_nested_else_presence_condition(self) -> None:
        source = "#if defined(A)\n#if defined(B)\n#else\nx;\n#endif\n#endif\n"
        inner = _blocks(source)[0].children
        self.assertEqual([_lines(block) for block in inner], [(2, 2), (3, 4)])
        self.assertEqual(inner[1].condition, Negation(B))
        self.assertEqual(inner[1].presence_condition, Conjunction(A, Negation(B)))

    def test_ifndef(self) -> None:
        self.assertEqual(_blocks("#ifndef A\n#endif\n")[0].condition, Negation(A))

    def test_directive_spelling(self) -> None:
        blocks = _blocks("# if defined(A)\n#\tendif\n#if(defined(B))\n#endif\n")
        self.assertEqual([block.condition for block in blocks], [A, B])
        self.assertEqual([_lines(block) for block in blocks], [(1, 1), (3, 3)])

    def test_comments_are_ignored(self) -> None:
        blocks = _blocks("#if defined(A) /* comment */\n#endif // done\n")
        self.assertEqual(blocks[0].condition, A)

    def test_directives_inside_block_comment(self) -> None:
        self.assertEqual(_blocks("/*\n#if defined(A)\n*/\n"), [])

    def test_commented_out_directive_pair(self) -> None:
        self.assertEqual(_blocks("/*#if defined(A)\n#endif*/\n"), [])

    def test_continued_disjunction(self) -> None:
        blocks = _blocks("#if defined(A) \\\n || defined(B)\nx;\n#endif\n")
        self.assertEqual(blocks[0].condition, Disjunction(A, B))
        self.assertEqual(_lines(blocks[0]), (1, 3))

    def test_str(self) -> None:
        self.assertEqual(str(_blocks("#if defined(A)\nx;\n#endif\n")[0]), "test.c:1-2: A")

    def test_read_blocks_from_stream(self) -> None:
        blocks = read_blocks(io.StringIO("#if defined(A)\n#endif\n"), "s.c")
        self.assertEqual(blocks[0].source_file, "s.c")

    def test_parser_accepts_line_lists(self) -> None:
        blocks = BlockParser("l.c").read_blocks(["#if defined(A)\n", "#endif\n"])
        self.assertEqual(_lines(blocks[0]), (1, 1))


class StructuralErrorTests(unittest.TestCase):
    def assertStructuralError(self, source: str, line: int, fragment: str) -> None:
        with self.assertRaises(StructuralFormatError) as ctx:
            _blocks(source)
        self.assertEqual(ctx.exception.line, line)
        self.assertEqual(ctx.exception.filename, "test.c")
        self.assertIn(fragment, ctx.exception.message)

    def test_endif_without_opening(self) -> None:
        self.assertStructuralError("x;\n#endif\n", 2, "#endif with no corresponding opening")

    def test_elif_without_if(self) -> None:
        self.assertStructuralError("#elif defined(A)\n", 1, "#elif with no previous #if")

    def test_else_without_if(self) -> None:
        self.assertStructuralError("#else\n", 1, "#else with no previous #if")

    def test_else_after_else(self) -> None:
        self.assertStructuralError(
            "#if defined(A)\n#else\n#else\n#endif\n", 3, "#else after an #else"
        )

    def test_elif_after_else(self) -> None:
        self.assertStructuralError(
            "#if defined(A)\n#else\n#elif defined(B)\n#endif\n", 3, "#elif after an #else"
        )

    def test_extra_endif(self) -> None:
        self.assertStructuralError("#ifdef A\n#endif\n#endif\n", 3, "no corresponding opening")

    def test_missing_endif(self) -> None:
        self.assertStructuralError("x;\n#if defined(A)\n", 2, "Found opening at line 2")

    def test_missing_outer_endif(self) -> None:
        self.assertStructuralError(
            "#if defined(A)\n\n#if defined(B)\n#endif\n", 1, "no closing #endif"
        )

    def test_structure_is_checked_before_expression(self) -> None:
        self.assertStructuralError("#elif A +\n", 1, "no previous #if")

    def test_error_location_in_message(self) -> None:
        with self.assertRaises(StructuralFormatError) as ctx:
            _blocks("#endif\n")
        self.assertTrue(str(ctx.exception).endswith("at test.c:1"))


class InvalidConditionTests(unittest.TestCase):
    def test_invalid_condition_raises(self) -> None:
        with self.assertRaises(ExpressionFormatError) as ctx:
            _blocks("x;\n#if A\n#endif\n")
        self.assertEqual(ctx.exception.line, 2)
        self.assertEqual(ctx.exception.filename, "test.c")
        self.assertIn("Can't parse expression 'A'", ctx.exception.message)

    def test_empty_ifdef(self) -> None:
        with self.assertRaises(ExpressionFormatError):
            _blocks("#ifdef\n#endif\n")

    def test_true_policy(self) -> None:
        options = ExtractorOptions(invalid_condition=InvalidConditionHandling.TRUE)
        blocks = _blocks("#if A\n#elif defined(B)\n#endif\n", options)
        self.assertEqual([block.condition for block in blocks], [TRUE, Conjunction(Negation(TRUE), B)])

    def test_error_variable_policy(self) -> None:
        options = ExtractorOptions(invalid_condition=InvalidConditionHandling.ERROR_VARIABLE)
        blocks = _blocks("#if defined(A)\n#if A +\n#endif\n#endif\n", options)
        inner = blocks[0].children[0]
        self.assertEqual(inner.condition, Variable("PARSING_ERROR"))
        self.assertEqual(inner.presence_condition, Conjunction(A, Variable("PARSING_ERROR")))

    def test_deeply_nested_condition_is_recovered(self) -> None:
        options = ExtractorOptions(invalid_condition=InvalidConditionHandling.ERROR_VARIABLE)
        source = "x;\n#if " + "(" * 100 + "defined(A)" + ")" * 100 + "\n#endif\n#ifdef B\n#endif\n"
        root = _blocks(source, options)[0]
        self.assertEqual([block.condition for block in root.children], [Variable("PARSING_ERROR"), B])

    def test_deeply_nested_condition_raises_format_error(self) -> None:
        with self.assertRaises(ExpressionFormatError) as ctx:
            _blocks("#if " + "(" * 100 + "defined(A)" + ")" * 100 + "\n#endif\n")
        self.assertEqual(ctx.exception.line, 1)
        self.assertIn("nested too deeply", ctx.exception.message)

    def test_fuzzy_parsing_in_blocks(self) -> None:
        options = ExtractorOptions(fuzzy_parsing=True, handle_linux_macros=True)
        blocks = _blocks("#if VERSION >= 3\n#elif IS_ENABLED(CONFIG_X)\n#endif\n", options)
        self.assertEqual(blocks[0].condition, Variable("VERSION_ge_3"))
        self.assertEqual(
            blocks[1].condition,
            Conjunction(
                Negation(Variable("VERSION_ge_3")),
                Disjunction(Variable("CONFIG_X"), Variable("CONFIG_X_MODULE")),
            ),
        )


if __name__ == "__main__":
    unittest.main()
