import importlib.metadata
import os
import tempfile
import unittest
from unittest.mock import patch
from click.testing import CliRunner
from depbuilder.errors import ExternalCommandFailure
from depbuilder.main import cli

WORKSPACE = '''def tf_workspace():
  native.http_archive(
    name = "protobuf",
    url = "https://example.org/v1.2.3.tar.gz",
    strip_prefix = "protobuf-1.2.3",
  )
'''


class CliTestCase(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = os.path.realpath(self._tmp.name)
        self.root = os.path.join(self.tmp, "tensorflow-src")
        self.out = os.path.join(self.tmp, "cmake")
        os.makedirs(os.path.join(self.root, "tensorflow"))
        os.makedirs(self.out)
        with open(os.path.join(self.root, "tensorflow", "workspace.bzl"), "w") as f:
            f.write(WORKSPACE)

    def tearDown(self):
        self._tmp.cleanup()

    def read(self, *parts):
        with open(os.path.join(*parts)) as f:
            return f.read()


class TestUsage(CliTestCase):

    def test_no_arguments(self):
        result = self.runner.invoke(cli, [])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Usage:", result.output)

    def test_unknown_mode(self):
        self.assertEqual(self.runner.invoke(cli, ["frobnicate", self.root]).exit_code, 1)

    def test_generate_without_submode(self):
        self.assertEqual(self.runner.invoke(cli, ["generate"]).exit_code, 1)

    def test_generate_unknown_submode(self):
        self.assertEqual(self.runner.invoke(cli, ["generate", "bogus", self.root]).exit_code, 1)

    def test_too_many_arguments(self):
        result = self.runner.invoke(cli, ["generate", "external", self.root, self.out, self.tmp])
        self.assertEqual(result.exit_code, 1)
        self.assertFalse(os.path.exists(os.path.join(self.out, "Protobuf_VERSION.cmake")))

    def test_missing_host_argument(self):
        self.assertEqual(self.runner.invoke(cli, ["install"]).exit_code, 1)

    def test_help_exits_cleanly(self):
        result = self.runner.invoke(cli, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("generate", result.output)


class TestGenerateCommand(CliTestCase):

    def test_generate_external(self):
        result = self.runner.invoke(cli, ["generate", "external", self.root, self.out])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.read(self.out, "Protobuf_VERSION.cmake"), "set(Protobuf_URL https://example.org/v1.2.3.tar.gz)\n")
        self.assertTrue(os.path.isfile(os.path.join(self.out, "Protobuf.cmake")))
        self.assertFalse(os.path.exists(os.path.join(self.out, "FindProtobuf.cmake")))

    def test_generate_installed(self):
        install_dir = os.path.join(self.tmp, "prefix")
        os.makedirs(os.path.join(install_dir, "include", "google", "protobuf"))

        result = self.runner.invoke(cli, ["generate", "installed", self.root, self.out, install_dir])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(f"Found Protobuf in {install_dir}", result.output)
        self.assertEqual(
            self.read(self.out, "Protobuf_VERSION.cmake"),
            "set(Protobuf_URL https://example.org/v1.2.3.tar.gz)\n"
            f"set(Protobuf_INSTALL_DIR {install_dir})\n",
        )
        self.assertTrue(os.path.isfile(os.path.join(self.out, "FindProtobuf.cmake")))
        self.assertFalse(os.path.exists(os.path.join(self.out, "Protobuf.cmake")))

    def test_generate_installed_defaults_to_usr_local(self):
        result = self.runner.invoke(cli, ["generate", "installed", self.root, self.out])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("set(Protobuf_INSTALL_DIR /usr/local)\n", self.read(self.out, "Protobuf_VERSION.cmake"))

    def test_generate_defaults_to_current_directory(self):
        with self.runner.isolated_filesystem(temp_dir=self.tmp):
            result = self.runner.invoke(cli, ["generate", "external", self.root])
            self.assertEqual(result.exit_code, 0, result.output)
            self.assertTrue(os.path.isfile("Protobuf_VERSION.cmake"))
            self.assertTrue(os.path.isfile("Protobuf.cmake"))

    def test_install_dir_from_config_file(self):
        config_path = os.path.join(self.tmp, "depbuilder.toml")
        with open(config_path, "w") as f:
            f.write('[install]\nprefix = "/opt/protobuf"\n')

        result = self.runner.invoke(cli, ["-c", config_path, "generate", "installed", self.root, self.out])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("set(Protobuf_INSTALL_DIR /opt/protobuf)\n", self.read(self.out, "Protobuf_VERSION.cmake"))

    def test_missing_metadata(self):
        with open(os.path.join(self.root, "tensorflow", "workspace.bzl"), "w") as f:
            f.write('# protobuf\nnative.http_archive(name = "grpc", url = "https://x/y.tar.gz", strip_prefix = "y")\n')

        result = self.runner.invoke(cli, ["generate", "external", self.root, self.out])

        self.assertEqual(result.exit_code, 1)
        self.assertIn(f"Could not find all required strings in {self.root}", result.output)
        self.assertEqual(os.listdir(self.out), [])

    def test_missing_host_source(self):
        missing = os.path.join(self.tmp, "missing")
        result = self.runner.invoke(cli, ["generate", "external", missing, self.out])
        self.assertEqual(result.exit_code, 1)
        self.assertIn(f"Could not find all required strings in {missing}", result.output)

    def test_missing_output_directory(self):
        result = self.runner.invoke(cli, ["generate", "external", self.root, os.path.join(self.tmp, "nope")])
        self.assertEqual(result.exit_code, 1)


class TestInstallCommand(CliTestCase):

    def setUp(self):
        super().setUp()
        self.dlroot = os.path.join(self.tmp, "downloads")
        self.source_dir = os.path.join(self.dlroot, "protobuf-1.2.3")
        os.makedirs(self.dlroot)

    def fake_download(self, url, dest_dir, filename):
        path = os.path.join(dest_dir, filename)
        open(path, "w").close()
        return path

    def fake_extract(self, filepath, dest_dir, verbose=False):
        os.makedirs(os.path.join(dest_dir, "protobuf-1.2.3"))
        return dest_dir

    @patch('depbuilder.installer.run_checked')
    @patch('depbuilder.installer.extract')
    @patch('depbuilder.installer.download')
    def test_install(self, mock_download, mock_extract, mock_run):
        install_dir = os.path.join(self.tmp, "prefix")
        os.makedirs(self.source_dir)
        open(os.path.join(self.source_dir, "stale.o"), "w").close()
        mock_download.side_effect = self.fake_download
        mock_extract.side_effect = self.fake_extract

        result = self.runner.invoke(cli, ["install", self.root, install_dir, self.dlroot, "--skip-check", "-j", "8"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(os.path.exists(os.path.join(self.source_dir, "stale.o")))
        mock_download.assert_called_once_with("https://example.org/v1.2.3.tar.gz", self.dlroot, "v1.2.3.tar.gz")
        self.assertEqual(
            [(c.args[0], c.args[1]) for c in mock_run.call_args_list],
            [
                ("configure", ["./configure", f"--prefix={install_dir}"]),
                ("make", ["make", "-j", "8"]),
                ("make install", ["make", "install"]),
                ("ldconfig", ["ldconfig"]),
            ],
        )
        for c in mock_run.call_args_list:
            self.assertEqual(c.kwargs["cwd"], self.source_dir)
        self.assertFalse(os.path.exists(os.path.join(self.dlroot, "v1.2.3.tar.gz")))

    @patch('depbuilder.installer.run_checked')
    @patch('depbuilder.installer.extract')
    @patch('depbuilder.installer.download')
    def test_install_aborts_on_failed_step(self, mock_download, mock_extract, mock_run):
        os.makedirs(self.source_dir)
        mock_download.side_effect = self.fake_download
        mock_extract.side_effect = ExternalCommandFailure("Extracting v1.2.3.tar.gz", detail="no tar")

        result = self.runner.invoke(cli, ["install", self.root, os.path.join(self.tmp, "prefix"), self.dlroot])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Command failed - run terminated", result.output)
        self.assertFalse(os.path.exists(self.source_dir))
        mock_run.assert_not_called()

    @patch('depbuilder.installer.install_dependency')
    def test_install_defaults(self, mock_install):
        with self.runner.isolated_filesystem(temp_dir=self.tmp) as cwd:
            result = self.runner.invoke(cli, ["install", self.root])
            self.assertEqual(result.exit_code, 0, result.output)
            descriptor, install_dir, download_dir = mock_install.call_args.args
            self.assertEqual(descriptor.extracted_folder_name, "protobuf-1.2.3")
            self.assertEqual(install_dir, "/usr/local")
            self.assertEqual(os.path.realpath(download_dir), os.path.realpath(cwd))
            self.assertEqual(mock_install.call_args.kwargs, {
                "run_checks": True, "ldconfig": True, "jobs": 0, "verbose": False,
            })

    @patch('depbuilder.installer.install_dependency')
    def test_install_missing_metadata(self, mock_install):
        result = self.runner.invoke(cli, ["install", os.path.join(self.tmp, "missing")])
        self.assertEqual(result.exit_code, 1)
        mock_install.assert_not_called()


class TestOtherCommands(CliTestCase):

    def test_locate_json(self):
        result = self.runner.invoke(cli, ["locate", self.root, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"fetch_url": "https://example.org/v1.2.3.tar.gz"', result.output)
        self.assertIn('"archive_name": "v1.2.3.tar.gz"', result.output)
        self.assertIn('"extracted_folder_name": "protobuf-1.2.3"', result.output)

    def test_config_get_and_set(self):
        config_path = os.path.join(self.tmp, "depbuilder.toml")

        result = self.runner.invoke(cli, ["-c", config_path, "config", "set", "install.jobs", "4"])
        self.assertEqual(result.exit_code, 0, result.output)

        result = self.runner.invoke(cli, ["-c", config_path, "config", "get", "install.jobs"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip().splitlines()[-1], "4")

        result = self.runner.invoke(cli, ["-c", config_path, "config", "get", "dependency.name"])
        self.assertEqual(result.output.strip().splitlines()[-1], "protobuf")

    def test_config_get_unknown_key(self):
        result = self.runner.invoke(cli, ["config", "get", "install.nope"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Key 'install.nope' not found", result.output)

    def test_log_list(self):
        result = self.runner.invoke(cli, ["log", "--list"])
        self.assertEqual(result.exit_code, 0)

    @patch('importlib.metadata.version', return_value="9.9.9")
    def test_version(self, mock_version):
        result = self.runner.invoke(cli, ["version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("depbuilder version 9.9.9", result.output)

    @patch('importlib.metadata.version')
    def test_version_without_metadata_fails(self, mock_version):
        mock_version.side_effect = importlib.metadata.PackageNotFoundError("depbuilder")
        result = self.runner.invoke(cli, ["version"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Could not determine the version", result.output)


if __name__ == "__main__":
    unittest.main()
