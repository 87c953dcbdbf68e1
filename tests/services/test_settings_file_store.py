from sitemapper.services.settings_file_store import SettingsFileStore


def test_missing_file_gives_defaults(tmp_path):
    store = SettingsFileStore(path=str(tmp_path / "missing.yml"))
    assert store.load_yaml_dict() is None
    assert store.load_settings().storage_chunk_size == 50_000


def test_invalid_yaml_gives_defaults(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text(": this is not valid yaml", encoding="utf-8")
    store = SettingsFileStore(path=str(path))
    assert store.load_yaml_dict() is None


def test_engine_section_is_loaded(tmp_path):
    path = tmp_path / "sitemapper.yml"
    path.write_text(
        "engine:\n"
        "  storage_chunk_size: 1000\n"
        "  taxonomy_domains: [example.org]\n"
        "  vocabulary:\n"
        "    categories: [news, sport]\n",
        encoding="utf-8",
    )
    settings = SettingsFileStore(path=str(path)).load_settings()

    assert settings.storage_chunk_size == 1000
    assert settings.taxonomy_domains == ("example.org",)
    assert settings.vocabulary.categories == ("news", "sport")
