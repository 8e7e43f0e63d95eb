from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def pinned_requirements() -> dict[str, str]:
    pins = {}
    for line in (ROOT / "requirements.txt").read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        name, _, version = line.partition("==")
        pins[name.strip().lower()] = version.strip()
    return pins


def test_every_runtime_dependency_is_pinned() -> None:
    pins = pinned_requirements()

    assert set(pins) == {"matplotlib", "numpy", "pandas", "seaborn", "tqdm"}
    assert all(pins.values())


def test_pins_are_exact_versions() -> None:
    for line in (ROOT / "requirements.txt").read_text().splitlines():
        if line.strip() and not line.startswith("#"):
            assert "==" in line, line
