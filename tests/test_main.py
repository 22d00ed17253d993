import json

import main


def test_env_file_settings_reach_the_batch(tmp_path, monkeypatch):
    config_file = tmp_path / "scraper.json"
    config_file.write_text(json.dumps({"response_timeout": 1234}))
    monkeypatch.delenv("SCRAPER_CONFIG", raising=False)

    def fake_load_dotenv():
        monkeypatch.setenv("SCRAPER_CONFIG", str(config_file))

    seen = {}

    async def fake_run_batch(pincodes, terms, quantities, output_dir=None, headless=True, config=None):
        seen.update(pincodes=pincodes, terms=terms, config=config)
        return {"row_count": 0, "file": "x"}

    monkeypatch.setattr(main, "load_dotenv", fake_load_dotenv)
    monkeypatch.setattr(main, "run_batch", fake_run_batch)

    assert main.main(["batch", "--pincodes", "575006", "--terms", "onions"]) == 0
    assert seen["pincodes"] == ["575006"] and seen["terms"] == ["onions"]
    assert seen["config"].response_timeout == 1234


def test_invalid_batch_input_exits_nonzero(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.delenv("SCRAPER_CONFIG", raising=False)
    assert main.main(["batch", "--pincodes", "", "--terms", "onions"]) == 1
