import json

import numpy as np
from band_analysis.cli import main


class TestCommandLine:
    def test_synthetic_run(self, temp_output_dir):
        status = main([
            "--duration", "1.0",
            "--seed", "0",
            "--output-dir", str(temp_output_dir),
        ])

        assert status == 0
        metrics = json.loads((temp_output_dir / "metrics.json").read_text())
        spectrum = json.loads((temp_output_dir / "spectrum.json").read_text())
        assert metrics["strategy"] == "iir"
        assert metrics["num_samples"] == 1001
        assert "spectrum" not in metrics
        assert len(spectrum) > 0
        assert not (temp_output_dir / "stream.json").exists()

    def test_streaming_run(self, temp_output_dir):
        status = main([
            "--duration", "1.0",
            "--seed", "0",
            "--strategy", "resonant",
            "--stream-ticks", "3",
            "--no-pacing",
            "--output-dir", str(temp_output_dir),
        ])

        assert status == 0
        stream = json.loads((temp_output_dir / "stream.json").read_text())
        assert stream["summary"]["ticks"] == 3
        assert [tick["cursor"] for tick in stream["ticks"]] == [33, 66, 99]

    def test_npy_input(self, temp_output_dir):
        t = np.arange(1024) / 1000.0
        path = temp_output_dir / "signal.npy"
        np.save(str(path), np.sin(2 * np.pi * 10.0 * t))

        status = main(["--input", str(path), "--output-dir", str(temp_output_dir)])

        assert status == 0
        metrics = json.loads((temp_output_dir / "metrics.json").read_text())
        assert metrics["num_samples"] == 1024

    def test_npz_input_with_times(self, temp_output_dir):
        t = np.arange(600) / 1000.0
        path = temp_output_dir / "signal.npz"
        np.savez(str(path), time=t, values=np.sin(2 * np.pi * 9.0 * t))

        status = main(["--input", str(path), "--output-dir", str(temp_output_dir)])

        assert status == 0

    def test_config_file_and_overrides(self, temp_output_dir):
        config_path = temp_output_dir / "config.json"
        config_path.write_text(json.dumps({"filter_order": 2}))

        status = main([
            "--config", str(config_path),
            "--low", "9.0",
            "--duration", "0.6",
            "--output-dir", str(temp_output_dir),
        ])

        assert status == 0

    def test_invalid_band(self, temp_output_dir, capsys):
        status = main(["--low", "12", "--high", "8", "--output-dir", str(temp_output_dir)])

        assert status == 1
        assert "Error" in capsys.readouterr().err

    def test_missing_input(self, temp_output_dir):
        status = main(["--input", str(temp_output_dir / "missing.npy"),
                       "--output-dir", str(temp_output_dir)])

        assert status == 1
