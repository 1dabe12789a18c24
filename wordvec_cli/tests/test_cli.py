import argparse
import json
import os
import shutil
import sys
import tempfile
import unittest
from io import StringIO
from unittest.mock import patch, Mock

import numpy as np

from wordvec_cli.wordvec_cli import (
    parse_vector,
    get_parser,
    execute_command,
    _handle_build,
    _handle_get,
    _handle_similar,
    _handle_average,
    _handle_count,
    _run_with_session,
    main,
    _has_direct_command_args,
    _is_exit_command,
    _is_help_command,
    _handle_interactive,
)
from wordvec_data_model.index_packets import SimilarityResult
from wordvec_exception_model.exception import NoEmbeddingFoundError


class TestWordvecCLI(unittest.TestCase):

    def test_parse_vector_comma_separated(self):
        result = parse_vector("0.1,0.2,0.3")
        np.testing.assert_array_equal(result, np.array([0.1, 0.2, 0.3]))

    def test_parse_vector_json_format(self):
        result = parse_vector("[0.1, 0.2, 0.3]")
        np.testing.assert_array_equal(result, np.array([0.1, 0.2, 0.3]))

    def test_parse_vector_with_spaces(self):
        result = parse_vector(" 0.1 , 0.2 , 0.3 ")
        np.testing.assert_array_equal(result, np.array([0.1, 0.2, 0.3]))

    def test_parse_vector_keeps_float64(self):
        self.assertEqual(parse_vector("0.1").dtype, np.float64)

    def test_parse_vector_invalid_format(self):
        with self.assertRaises(argparse.ArgumentTypeError):
            parse_vector("invalid,vector,format")

    def test_get_parser(self):
        parser = get_parser()
        args = parser.parse_args(["--db", "x.db", "average", "new", "york"])
        self.assertEqual(args.db, "x.db")
        self.assertEqual(args.command, "average")
        self.assertEqual(args.words, ["new", "york"])

    def test_has_direct_command_args(self):
        with patch.object(sys, 'argv', ['wordvec']):
            self.assertFalse(_has_direct_command_args())

        with patch.object(sys, 'argv', ['wordvec', 'count']):
            self.assertTrue(_has_direct_command_args())

        with patch.object(sys, 'argv', ['wordvec', '--db', '/path']):
            self.assertFalse(_has_direct_command_args())

        with patch.object(sys, 'argv', ['wordvec', '--db', 'x.db', '--in-memory', 'get', 'cat']):
            self.assertTrue(_has_direct_command_args())

    def test_dim_option(self):
        args = get_parser().parse_args(["--dim", "3", "count"])
        self.assertEqual(args.dim, 3)
        self.assertIsNone(get_parser().parse_args(["count"]).dim)

    def test_is_exit_command(self):
        self.assertTrue(_is_exit_command("exit"))
        self.assertTrue(_is_exit_command("QUIT"))
        self.assertFalse(_is_exit_command("help"))

    def test_is_help_command(self):
        self.assertTrue(_is_help_command("help"))
        self.assertTrue(_is_help_command("?"))
        self.assertFalse(_is_help_command("exit"))


class TestCommandHandlers(unittest.TestCase):

    def setUp(self):
        self.session = Mock()

    @patch('sys.stdout', new_callable=StringIO)
    def test_handle_build(self, mock_stdout):
        self.session.build_from_file.return_value = 2
        _handle_build(self.session, argparse.Namespace(vec_file="wiki.en.vec"))
        self.session.build_from_file.assert_called_once_with("wiki.en.vec")
        self.assertEqual(mock_stdout.getvalue().strip(), "Stored 2 embeddings")

    @patch('sys.stdout', new_callable=StringIO)
    def test_handle_get(self, mock_stdout):
        self.session.embedding_vector.return_value = np.array([1.0, 0.0])
        _handle_get(self.session, argparse.Namespace(word="cat"))
        self.assertEqual(json.loads(mock_stdout.getvalue()), [1.0, 0.0])

    @patch('sys.stdout', new_callable=StringIO)
    def test_handle_similar(self, mock_stdout):
        self.session.most_similar_word.return_value = SimilarityResult(
            vector=np.array([1.0, 0.0]), score=0.9, found=True, word="cat")
        _handle_similar(self.session, argparse.Namespace(vector=np.array([0.9, 0.1])))
        self.assertEqual(json.loads(mock_stdout.getvalue())["word"], "cat")

    @patch('sys.stdout', new_callable=StringIO)
    def test_handle_average(self, mock_stdout):
        self.session.multi_word_embedding_vector.return_value = np.array([2.0, 3.0])
        _handle_average(self.session, argparse.Namespace(words=["a", "b"]))
        self.session.multi_word_embedding_vector.assert_called_once_with(["a", "b"])
        self.assertEqual(json.loads(mock_stdout.getvalue()), [2.0, 3.0])

    @patch('sys.stdout', new_callable=StringIO)
    def test_handle_count(self, mock_stdout):
        self.session.count.return_value = 7
        _handle_count(self.session)
        self.assertEqual(mock_stdout.getvalue().strip(), "7")

    @patch('sys.stderr', new_callable=StringIO)
    def test_execute_command_reports_errors(self, mock_stderr):
        self.session.embedding_vector.side_effect = NoEmbeddingFoundError("No embedding found", "fish")
        handled = execute_command(self.session, argparse.Namespace(command="get", word="fish"))
        self.assertTrue(handled)
        self.assertIn("Error: No embedding found", mock_stderr.getvalue())

    def test_execute_unknown_command(self):
        self.assertFalse(execute_command(self.session, argparse.Namespace(command="bogus")))


class TestCommandsAgainstDatabase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, 'cli.db')
        self.vec_path = os.path.join(self.temp_dir, 'small.vec')
        with open(self.vec_path, 'w', encoding='utf-8') as f:
            f.write("2 3\ncat 1.0 0.0 0.0\ndog 0.0 1.0 0.0\n")
        self.env = patch.dict(os.environ, {"WORDVEC_DIM": "3"})
        self.env.start()
        from wordvec_db.config import get_settings
        get_settings.cache_clear()

    def tearDown(self):
        self.env.stop()
        from wordvec_db.config import get_settings
        get_settings.cache_clear()
        shutil.rmtree(self.temp_dir)

    def run_cli(self, *argv):
        args = get_parser().parse_args(["--db", self.db_path, *argv])
        with patch('sys.stdout', new_callable=StringIO) as out:
            _run_with_session(args)
        return out.getvalue()

    def test_build_then_query(self):
        self.assertIn("Stored 2 embeddings", self.run_cli("build", self.vec_path))
        self.assertEqual(json.loads(self.run_cli("get", "cat")), [1.0, 0.0, 0.0])
        self.assertEqual(json.loads(self.run_cli("similar", "0.9,0.1,0.0"))["word"], "cat")
        self.assertEqual(json.loads(self.run_cli("average", "cat", "dog")), [0.5, 0.5, 0.0])
        self.assertEqual(self.run_cli("count").strip(), "2")

    def test_in_memory_query(self):
        self.run_cli("build", self.vec_path)
        args = get_parser().parse_args(["--db", self.db_path, "--in-memory", "get", "dog"])
        with patch('sys.stdout', new_callable=StringIO) as out:
            _run_with_session(args)
        self.assertEqual(json.loads(out.getvalue()), [0.0, 1.0, 0.0])

    def test_wrong_dimension_then_rebuild(self):
        with patch('sys.stderr', new_callable=StringIO) as err:
            self.run_cli("--dim", "300", "build", self.vec_path)
        self.assertIn("Error:", err.getvalue())

        self.assertIn("Stored 2 embeddings", self.run_cli("--dim", "3", "build", self.vec_path))
        self.assertEqual(self.run_cli("count").strip(), "2")

    @patch('sys.stderr', new_callable=StringIO)
    def test_in_memory_missing_database(self, mock_stderr):
        args = get_parser().parse_args(["--db", os.path.join(self.temp_dir, 'none.db'), "--in-memory", "count"])
        _run_with_session(args)
        self.assertIn("Error:", mock_stderr.getvalue())


class TestMainAndInteractive(unittest.TestCase):

    @patch('wordvec_cli.wordvec_cli._run_with_session')
    def test_main_direct(self, mock_run):
        with patch.object(sys, 'argv', ['wordvec', 'count']):
            main()
        mock_run.assert_called_once()
        self.assertEqual(mock_run.call_args[0][0].command, "count")

    @patch('wordvec_cli.wordvec_cli._run_with_session')
    def test_main_direct_with_leading_options(self, mock_run):
        with patch.object(sys, 'argv', ['wordvec', '--db', 'x.db', 'get', 'cat']):
            main()
        args = mock_run.call_args[0][0]
        self.assertEqual(args.db, "x.db")
        self.assertEqual(args.word, "cat")

    @patch('wordvec_cli.wordvec_cli._run_with_session')
    @patch('builtins.input', side_effect=["help", "get cat", "exit"])
    @patch('sys.stdout', new_callable=StringIO)
    def test_interactive(self, mock_stdout, mock_input, mock_run):
        _handle_interactive(get_parser())
        mock_run.assert_called_once()
        self.assertEqual(mock_run.call_args[0][0].word, "cat")
        self.assertIn("Bye!", mock_stdout.getvalue())

    @patch('builtins.input', side_effect=EOFError)
    @patch('sys.stdout', new_callable=StringIO)
    def test_interactive_eof(self, mock_stdout, mock_input):
        _handle_interactive(get_parser())
        self.assertIn("Bye!", mock_stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
