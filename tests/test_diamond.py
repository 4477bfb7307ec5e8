#!/usr/bin/env python

import sys
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

sys.path.append(Path(__file__).parents[1].as_posix())
from diamond_op import Diamond, diamond, new
from diamond_op.exceptions import OpenFailure, ReadFailure
from diamond_op.sources import NamedFile, STDIN
from diamond_op.test_common import TestCaseBase, main


class SegmentedStdin:
    """Emulates a terminal, where stdin may report EOF and then produce more lines later"""

    def __init__(self, *segments):
        self.segments = [list(segment) for segment in segments]
        self.closed = False

    def readline(self) -> bytes:
        if not self.segments:
            return b''
        segment = self.segments[0]
        if segment:
            return segment.pop(0)
        self.segments.pop(0)
        return b''

    def close(self):
        self.closed = True


class DiamondTest(TestCaseBase):
    # region Line Sequencing

    def test_files_read_in_order(self):
        a = self.make_file('a.txt', 'x\ny\n')
        b = self.make_file('b.txt', 'z\n')
        reader = Diamond([a, b])
        self.assertEqual(['x\n', 'y\n', 'z\n'], list(reader))
        for _ in range(3):
            self.assertEqual('', reader.read_line())
        self.assertEqual([], list(reader))

    def test_no_args_reads_stdin(self):
        self.assertEqual(['a\n', 'b\n'], list(Diamond([], stdin=BytesIO(b'a\nb\n'))))

    def test_default_args_from_sys_argv(self):
        a = self.make_file('a.txt', 'x\ny\n')
        with patch('sys.argv', ['prog', a, a]):
            self.assertEqual(['x\n', 'y\n', 'x\n', 'y\n'], list(Diamond()))

    def test_default_stdin_is_sys_stdin(self):
        self.patch_stdin(b'foo\nbar\n')
        self.assertEqual(['foo\n', 'bar\n'], list(Diamond([])))

    def test_stdin_between_files(self):
        a = self.make_file('a.txt', 'x\n')
        b = self.make_file('b.txt', 'z\n')
        stdin = BytesIO(b'1\n2\n')
        self.assertEqual(['x\n', '1\n', '2\n', 'z\n'], list(Diamond([a, '-', b], stdin=stdin)))
        self.assertFalse(stdin.closed)

    def test_second_stdin_reads_remaining_input(self):
        a = self.make_file('a.txt', 'x\n')
        stdin = SegmentedStdin([b'1\n', b'2\n'], [b'3\n'])
        self.assertEqual(['1\n', '2\n', 'x\n', '3\n'], list(Diamond(['-', a, '-'], stdin=stdin)))
        self.assertFalse(stdin.closed)

    def test_second_stdin_after_exhaustion_is_empty(self):
        self.assertEqual(['1\n', '2\n'], list(Diamond(['-', '-'], stdin=BytesIO(b'1\n2\n'))))

    def test_duplicate_files_are_re_read(self):
        a = self.make_file('a.txt', 'x\n')
        self.assertEqual(['x\n', 'x\n'], list(Diamond([a, a])))

    def test_last_line_without_newline_is_not_joined(self):
        a = self.make_file('a.txt', 'x\ny')
        b = self.make_file('b.txt', 'z\n')
        self.assertEqual(['x\n', 'y', 'z\n'], list(Diamond([a, b])))

    def test_empty_file_is_skipped(self):
        a = self.make_file('a.txt', '')
        b = self.make_file('b.txt', 'z\n')
        self.assertEqual(['z\n'], list(Diamond([a, b])))

    def test_crlf_preserved(self):
        a = self.make_file('a.txt', b'x\r\ny\r\n')
        self.assertEqual(['x\r\n', 'y\r\n'], list(Diamond([a])))

    def test_path_objects(self):
        a = self.make_file('a.txt', 'x\n')
        self.assertEqual(['x\n'], list(Diamond([Path(a)])))

    # endregion

    # region Errors

    def test_missing_file(self):
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        reader = Diamond([missing])
        with self.assertRaises(OpenFailure) as ctx:
            reader.read_line()
        self.assertEqual(missing, ctx.exception.path)
        self.assertIsInstance(ctx.exception.cause, FileNotFoundError)
        self.assertIn(missing, str(ctx.exception))
        self.assertEqual('', reader.read_line())
        self.assertEqual('', reader.read_line())

    def test_missing_file_between_files(self):
        a = self.make_file('a.txt', 'x\n')
        b = self.make_file('b.txt', 'z\n')
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        reader = Diamond([a, missing, b])
        self.assertEqual('x\n', reader.read_line())
        with self.assertRaises(OpenFailure):
            reader.read_line()
        self.assertEqual((NamedFile(b),), reader.remaining)
        self.assertEqual('z\n', reader.read_line())
        self.assertEqual('', reader.read_line())

    def test_directory_cannot_be_opened(self):
        with self.assertRaises(OpenFailure):
            Diamond([self.tmp_dir.as_posix()]).read_line()

    def test_decode_error(self):
        a = self.make_file('a.txt', b'\xff\nok\n')
        reader = Diamond([a])
        with self.assertRaises(ReadFailure) as ctx:
            reader.read_line()
        self.assertEqual(NamedFile(a), ctx.exception.source)
        self.assertIsInstance(ctx.exception.cause, UnicodeDecodeError)
        self.assertEqual((0, 0), (reader.line_num, reader.source_line_num))
        self.assertEqual('ok\n', reader.read_line())  # The source is not skipped
        self.assertEqual((1, 1), (reader.line_num, reader.source_line_num))

    def test_decode_error_replaced(self):
        a = self.make_file('a.txt', b'\xff\n')
        self.assertEqual(['\ufffd\n'], list(Diamond([a], errors='replace')))

    def test_alternate_encoding(self):
        a = self.make_file('a.txt', b'caf\xe9\n')
        self.assertEqual(['caf\xe9\n'], list(Diamond([a], encoding='latin-1')))

    def test_stdin_read_error(self):
        stdin = BytesIO(b'x\n')
        stdin.close()
        reader = Diamond(['-'], stdin=stdin)
        with self.assertRaises(ReadFailure) as ctx:
            reader.read_line()
        self.assertIs(STDIN, ctx.exception.source)
        self.assertIsInstance(ctx.exception.cause, ValueError)

    # endregion

    # region Resource Management

    def test_exhausted_file_is_closed(self):
        a = self.make_file('a.txt', 'x\n')
        reader = Diamond([a, '-'], stdin=BytesIO(b'1\n'))
        self.assertEqual('x\n', reader.read_line())
        stream = reader._current
        self.assertFalse(stream.closed)
        self.assertEqual('1\n', reader.read_line())
        self.assertTrue(stream.closed)

    def test_close(self):
        a = self.make_file('a.txt', 'x\ny\n')
        b = self.make_file('b.txt', 'z\n')
        reader = Diamond([a, b])
        self.assertEqual('x\n', reader.read_line())
        stream = reader._current
        reader.close()
        self.assertTrue(stream.closed)
        self.assertIsNone(reader.source)
        self.assertEqual((), reader.remaining)
        self.assertEqual('', reader.read_line())
        reader.close()

    def test_close_does_not_close_stdin(self):
        stdin = BytesIO(b'1\n2\n')
        with Diamond([], stdin=stdin) as reader:
            self.assertEqual('1\n', reader.read_line())
        self.assertFalse(stdin.closed)

    def test_context_manager_closes_file(self):
        a = self.make_file('a.txt', 'x\ny\n')
        with Diamond([a]) as reader:
            reader.read_line()
            stream = reader._current
        self.assertTrue(stream.closed)

    # endregion

    # region Position Tracking

    def test_line_numbers(self):
        a = self.make_file('a.txt', 'x\ny\n')
        b = self.make_file('b.txt', 'z\n')
        reader = Diamond([a, b])
        self.assertIsNone(reader.source)
        self.assertEqual('x\n', reader.read_line())
        self.assertEqual(NamedFile(a), reader.source)
        self.assertEqual((1, 1), (reader.line_num, reader.source_line_num))
        reader.read_line()
        self.assertEqual((2, 2), (reader.line_num, reader.source_line_num))
        reader.read_line()
        self.assertEqual(NamedFile(b), reader.source)
        self.assertEqual((3, 1), (reader.line_num, reader.source_line_num))
        self.assertEqual('', reader.read_line())
        self.assertIsNone(reader.source)
        self.assertEqual((3, 0), (reader.line_num, reader.source_line_num))

    def test_line_numbers_after_open_failure(self):
        a = self.make_file('a.txt', 'x\ny\n')
        b = self.make_file('b.txt', 'z\n')
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        reader = Diamond([a, missing, b])
        self.assertEqual(['x\n', 'y\n'], [reader.read_line(), reader.read_line()])
        with self.assertRaises(OpenFailure):
            reader.read_line()
        self.assertIsNone(reader.source)
        self.assertEqual((2, 0), (reader.line_num, reader.source_line_num))
        self.assertEqual('z\n', reader.read_line())
        self.assertEqual((3, 1), (reader.line_num, reader.source_line_num))

    # endregion

    # region Alternate Read Modes

    def test_read_until_custom_delimiter(self):
        a = self.make_file('a.txt', 'a,b,')
        b = self.make_file('b.txt', 'c')
        reader = Diamond([a, b])
        results = [reader.read_until(b',') for _ in range(4)]
        self.assertEqual([b'a,', b'b,', b'c', b''], results)

    def test_read_until_unbuffered_stdin(self):
        reader = Diamond(['-'], stdin=BytesIO(b'1\x002'))
        self.assertEqual([b'1\x00', b'2', b''], [reader.read_until(0) for _ in range(3)])

    def test_read_until_newline(self):
        a = self.make_file('a.txt', b'x\n\xff\n')
        reader = Diamond([a])
        self.assertEqual([b'x\n', b'\xff\n', b''], [reader.read_until() for _ in range(3)])

    def test_read_until_long_record(self):
        content = b'x' * 20000 + b';y'
        a = self.make_file('a.txt', content)
        reader = Diamond([a])
        self.assertEqual(b'x' * 20000 + b';', reader.read_until(b';'))
        self.assertEqual(b'y', reader.read_until(b';'))

    def test_read_until_invalid_delimiter(self):
        with self.assertRaises(ValueError):
            Diamond([]).read_until(b'ab')
        with self.assertRaises(ValueError):
            Diamond([]).read_until(b'')

    def test_reader_single_stream(self):
        a = self.make_file('a.txt', 'x\ny')
        b = self.make_file('b.txt', 'z\n')
        with Diamond([a, '-', b], stdin=BytesIO(b'1\n')).reader() as stream:
            self.assertEqual(b'x\ny1\nz\n', stream.read())

    def test_reader_readline_spans_sources(self):
        a = self.make_file('a.txt', 'x\ny')
        b = self.make_file('b.txt', 'z\n')
        stream = Diamond([a, b]).reader()
        self.assertEqual(b'x\n', stream.readline())
        self.assertEqual(b'yz\n', stream.readline())
        self.assertEqual(b'', stream.readline())

    def test_reader_open_failure(self):
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        with self.assertRaises(OpenFailure):
            Diamond([missing]).reader().read()

    def test_reader_read_keeps_data_before_open_failure(self):
        a = self.make_file('a.txt', 'x\n')
        b = self.make_file('b.txt', 'z\n')
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        stream = Diamond([a, missing, b]).reader()
        self.assertEqual(b'x\n', stream.read())
        with self.assertRaises(OpenFailure):
            stream.read()
        self.assertEqual(b'z\n', stream.read())
        self.assertEqual(b'', stream.read())

    def test_reader_readline_keeps_partial_line_before_open_failure(self):
        a = self.make_file('a.txt', 'x\ny')
        b = self.make_file('b.txt', 'z\n')
        missing = self.tmp_dir.joinpath('missing.txt').as_posix()
        stream = Diamond([a, missing, b]).reader()
        self.assertEqual(b'x\n', stream.readline())
        self.assertEqual(b'y', stream.readline())
        with self.assertRaises(OpenFailure):
            stream.readline()
        self.assertEqual([b'z\n'], list(stream))

    def test_reader_read_size(self):
        a = self.make_file('a.txt', 'abc')
        b = self.make_file('b.txt', 'def')
        stream = Diamond([a, b]).reader()
        self.assertEqual(b'abcd', stream.read(4))
        self.assertEqual(b'ef', stream.read(4))
        self.assertEqual(b'', stream.read(4))

    def test_closing_reader_closes_diamond(self):
        a = self.make_file('a.txt', 'x\ny\n')
        reader = Diamond([a, a])
        stream = reader.reader()
        stream.read(1)
        stream.close()
        self.assertIsNone(reader.source)
        self.assertEqual((), reader.remaining)

    def test_diamond_generator(self):
        a = self.make_file('a.txt', 'x\ny')
        self.assertEqual(['x\n', 'y'], list(diamond([a])))
        self.assertEqual(['x', 'y'], list(diamond([a], strip=True)))

    def test_new(self):
        self.assertEqual(['1\n'], list(new([], stdin=BytesIO(b'1\n'))))

    # endregion


if __name__ == '__main__':
    main()
