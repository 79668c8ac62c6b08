from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def repo_root() -> Path:
    here = Path(__file__).resolve()
    # Typical dev layout: <repo>/src/pod_gen/config.py
    for cand in [here.parent] + list(here.parents):
        if (cand / "pyproject.toml").exists() and (cand / "src").exists():
            return cand
    try:
        return here.parents[2]
    except IndexError:
        return here.parent


def _default_env_files() -> tuple[Path, ...]:
    """Return dotenv candidates for pydantic-settings (missing files are ignored).

    Precedence (later overrides earlier):
    1) repo-root `.env`, `.env.local`
    2) CWD `.env`, `.env.local`
    """

    root = repo_root()
    cwd = Path.cwd()
    return (
        root / ".env",
        root / ".env.local",
        cwd / ".env",
        cwd / ".env.local",
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POD_GEN_",
        extra="ignore",
        env_file=_default_env_files(),
        env_file_encoding="utf-8",
    )

    # Assets: outline templates live in `<assets_dir>/outlines/<view>.png`.
    assets_dir: Path = Field(default_factory=lambda: repo_root() / "assets")
    logo_path: Path | None = None
    style_path: Path | None = None

    # Company block printed on every header and on the bundle summary.
    company_name: str = "OVM Ltd"
    company_address: str = "272 Bath Street, Glasgow, G2 4JR"
    company_phone: str = "07783 490007"
    company_email: str = "movements@ovmtransport.com"
    company_number: str = "SC834621"
    currency_symbol: str = "£"

    # Photo preprocessing (print profile)
    image_max_edge_px: int = 1600
    image_jpeg_quality: int = 82
    # None -> ThreadPoolExecutor default (min(32, cpu + 4)).
    image_max_workers: int | None = None

    # Damage overlay geometry (points)
    # Fraction of the distance to the slot centre each projected marker is pulled in.
    centering_correction: float = 0.15
    overlay_pad_pt: float = 10.0
    marker_radius_pt: float = 9.0

    # Unicode TrueType fonts for page text. A missing file falls back to the built-in Helvetica.
    font_path: Path | None = Field(default_factory=lambda: repo_root() / "assets" / "fonts" / "DejaVuSans.ttf")
    font_bold_path: Path | None = Field(default_factory=lambda: repo_root() / "assets" / "fonts" / "DejaVuSans-Bold.ttf")

    # Payment block on the last bundle summary page (omitted when all three are empty).
    payment_name: str = "OVM Ltd"
    payment_sort_code: str = "82-19-74"
    payment_account_number: str = "70109500"

    log_level: str = "INFO"


settings = Settings()
