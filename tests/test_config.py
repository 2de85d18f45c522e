"""Unit tests for configuration models (cargo_scaffold.config).

Tests cover:
- ScaffoldConfig defaults and immutability
- Meta flag expansion (full, assets)
- Validation (empty name, bin/lib exclusivity, workflow names, verbosity)
- Derived properties
- NetworkConfig.from_env
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cargo_scaffold.config import BUNDLED_WORKFLOWS, NetworkConfig, ScaffoldConfig


class TestScaffoldConfigDefaults:
    @pytest.mark.unit
    def test_defaults(self):
        config = ScaffoldConfig()
        assert config.directory == Path(".")
        assert config.name == "example"
        assert config.dry_run is False
        assert config.dependencies == []
        assert config.workflows == []
        assert config.verbosity == 0
        assert config.workspace_mode is True

    @pytest.mark.unit
    def test_frozen(self):
        config = ScaffoldConfig()
        with pytest.raises(ValidationError):
            config.name = "other"

    @pytest.mark.unit
    def test_network_defaults(self):
        config = ScaffoldConfig()
        assert config.network.registry_url == "https://crates.io/api/v1"
        assert config.network.spdx_url == "https://spdx.org/licenses"
        assert config.network.timeout == 10.0


class TestMetaFlags:
    @pytest.mark.unit
    def test_full_expands(self):
        config = ScaffoldConfig(full=True)
        assert config.with_ci
        assert config.license
        assert config.gitignore
        assert config.etc
        assert config.assets
        assert config.selected_workflows == list(BUNDLED_WORKFLOWS)

    @pytest.mark.unit
    def test_assets_implies_etc(self):
        config = ScaffoldConfig(assets=True)
        assert config.etc is True

    @pytest.mark.unit
    def test_with_license_implies_license(self):
        config = ScaffoldConfig(with_license="apache-2.0")
        assert config.include_license is True
        assert config.license_type == "apache-2.0"

    @pytest.mark.unit
    def test_default_license_type_is_mit(self):
        assert ScaffoldConfig(license=True).license_type == "mit"


class TestValidation:
    @pytest.mark.unit
    def test_bin_and_lib_exclusive(self):
        with pytest.raises(ValidationError, match="mutually exclusive"):
            ScaffoldConfig(bin=True, lib=True)

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["", "   ", "my app", "../x", "1st", "caf\u00e9"])
    def test_invalid_name_rejected(self, name: str):
        with pytest.raises(ValidationError):
            ScaffoldConfig(name=name)

    @pytest.mark.unit
    def test_name_is_stripped(self):
        assert ScaffoldConfig(name="  demo ").name == "demo"

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["my-crate", "my_crate", "_private", "Crate2"])
    def test_valid_names(self, name: str):
        assert ScaffoldConfig(name=name).name == name

    @pytest.mark.unit
    def test_missing_ci_yml_rejected(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="does not exist"):
            ScaffoldConfig(ci_yml=tmp_path / "missing.yml")

    @pytest.mark.unit
    def test_unknown_workflow_rejected(self):
        with pytest.raises(ValidationError, match="unknown workflow"):
            ScaffoldConfig(workflows=["deploy"])

    @pytest.mark.unit
    @pytest.mark.parametrize("level", [-1, 5])
    def test_verbosity_range(self, level: int):
        with pytest.raises(ValidationError):
            ScaffoldConfig(verbosity=level)


class TestDerived:
    @pytest.mark.unit
    def test_will_touch_ci(self, tmp_path: Path):
        custom = tmp_path / "ci.yml"
        custom.write_text("name: CI\n", encoding="utf-8")
        assert ScaffoldConfig().will_touch_ci is False
        assert ScaffoldConfig(with_ci=True).will_touch_ci is True
        assert ScaffoldConfig(ci_yml=custom).will_touch_ci is True
        assert ScaffoldConfig(workflows=["tag"]).will_touch_ci is True

    @pytest.mark.unit
    def test_selected_workflows_keep_bundled_order(self):
        config = ScaffoldConfig(workflows=["version", "release"], with_ci=True)
        assert config.selected_workflows == ["ci", "release", "version"]

    @pytest.mark.unit
    def test_resolved_description(self):
        assert ScaffoldConfig(name="demo").resolved_description == "demo workspace"
        assert ScaffoldConfig(bin=True).resolved_description == "A new binary crate"
        assert ScaffoldConfig(lib=True).resolved_description == "A new library crate"
        assert ScaffoldConfig(description="Custom").resolved_description == "Custom"

    @pytest.mark.unit
    def test_single_crate_modes(self):
        assert ScaffoldConfig(bin=True).workspace_mode is False
        assert ScaffoldConfig(lib=True).workspace_mode is False


class TestNetworkConfig:
    @pytest.mark.unit
    def test_from_env_defaults(self, monkeypatch: pytest.MonkeyPatch):
        for var in (
            "CARGO_SCAFFOLD_REGISTRY_URL",
            "CARGO_SCAFFOLD_SPDX_URL",
            "CARGO_SCAFFOLD_ASSET_URL",
            "CARGO_SCAFFOLD_HTTP_TIMEOUT",
        ):
            monkeypatch.delenv(var, raising=False)
        assert NetworkConfig.from_env() == NetworkConfig()

    @pytest.mark.unit
    def test_from_env_overrides(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CARGO_SCAFFOLD_REGISTRY_URL", "http://registry.local/api/v1")
        monkeypatch.setenv("CARGO_SCAFFOLD_HTTP_TIMEOUT", "2.5")
        network = NetworkConfig.from_env()
        assert network.registry_url == "http://registry.local/api/v1"
        assert network.timeout == 2.5

    @pytest.mark.unit
    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            NetworkConfig(timeout=0)
