import logging
import unittest
import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from login_anomaly.cli import main


def write_csv(path, rows):
    lines = ["User,Computer,Time,Date"] + [",".join(row) for row in rows]
    path.write_text("\n".join(lines) + "\n")
    return path


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.models = self.dir / "models"

        rows = []
        for day in range(1, 15):
            rows.append(("alice", "PC1", f"9:{day:02d}", f"2024-01-{day:02d}"))
            rows.append(("bob", "PC2", f"10:{day:02d}", f"2024-01-{day:02d}"))
        self.training = write_csv(self.dir / "train.csv", rows)
        self.prediction = write_csv(self.dir / "predict.csv", rows[:10] + [("bob", "PC1", "3:00", "2024-01-20")])

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *args):
        return main(["--model-dir", str(self.models), *args])

    def test_train_then_predict(self):
        self.assertEqual(self.run_cli("train", str(self.training)), 0)
        self.assertEqual(self.run_cli("train", str(self.training)), 0)
        self.assertTrue((self.models / "savedmodel1.joblib").is_file())
        self.assertTrue((self.models / "savedmodel2.joblib").is_file())

        self.assertEqual(self.run_cli("predict", str(self.prediction), "1"), 0)

    def test_ownership_baseline_option(self):
        self.assertEqual(self.run_cli("train", str(self.training)), 0)
        code = self.run_cli(
            "predict", str(self.prediction), "1", "--ownership-baseline", str(self.training)
        )
        self.assertEqual(code, 0)

    def test_failures_exit_nonzero(self):
        self.assertEqual(self.run_cli("train", str(self.dir / "missing.csv")), 1)
        self.assertEqual(self.run_cli("predict", str(self.prediction), "9"), 1)

        invalid = write_csv(self.dir / "invalid.csv", [("", "PC1", "9:00", "2024-01-01")])
        self.assertEqual(self.run_cli("train", str(invalid)), 1)
        self.assertFalse(self.models.exists() and any(self.models.iterdir()))

    def test_log_file_receives_report(self):
        log_file = self.dir / "logs" / "run.log"
        self.addCleanup(self.close_file_handlers, log_file)

        self.assertEqual(self.run_cli("--log-file", str(log_file), "train", str(self.training)), 0)
        self.assertEqual(
            self.run_cli("--log-file", str(log_file), "predict", str(self.prediction), "1"), 0
        )

        text = log_file.read_text()
        self.assertIn("--- STARTING MODEL TRAINING ---", text)
        self.assertIn("[ANOMALY] ANOMALY: bob on PC1 at 2024-01-20 03:00 (usual: alice)", text)
        self.assertEqual(text.count("PCA: Rank="), 1)

    def close_file_handlers(self, log_file):
        for name in ("login_anomaly", "login_anomaly.report"):
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_file.resolve():
                    logger.removeHandler(handler)
                    handler.close()

    def test_usage_errors(self):
        with self.assertRaises(SystemExit) as ctx:
            main([])
        self.assertEqual(ctx.exception.code, 2)
        with self.assertRaises(SystemExit):
            main(["predict", str(self.prediction), "latest"])


if __name__ == '__main__':
    unittest.main()
