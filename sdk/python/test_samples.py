# SPDX-License-Identifier: Apache-2.0
import importlib.util
from pathlib import Path

import pytest

_SAMPLES = Path(__file__).resolve().parents[2] / "samples"


def _load(rel, name):
    spec = importlib.util.spec_from_file_location(name, _SAMPLES / rel)
    assert spec and spec.loader
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


@pytest.mark.parametrize("rel,name,tag", [
    ("configdump/export_configdump.py", "sample_export_configdump", "[Configdump]"),
    ("enrollment/enroll_pkcs10.py", "sample_enroll_pkcs10", "[Enroll]"),
])
def test_sample_reports_missing_host(rel, name, tag, monkeypatch, tmp_path, capsys):
    monkeypatch.delenv("EJBCA_HOST", raising=False)
    monkeypatch.setenv("EJBCA_CERT_DIR", str(tmp_path))
    sample = _load(rel, name)

    with pytest.raises(SystemExit) as exc:
        sample.main()
    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert f"{tag} ❌" in out
    assert "EJBCA_HOST" in out
