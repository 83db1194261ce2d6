import os
import pandas as pd
from normalizer import canonical_from_planner_name
from planner import recompute_prereq_statuses
from prereq_parser import parse_prerequisite

REQUIRED_COLUMNS = ["subject", "course_number", "name", "credits"]
CATALOG_COLUMNS = ["subject", "course_number", "section", "name", "credits", "prerequisite"]


class CourseCatalog:
    """
    Course catalog loaded once and passed explicitly to whoever needs it.
    The server replaces the whole object on reload; nothing is memoized globally.
    """

    def __init__(self, courses_df: pd.DataFrame):
        self.courses_df = courses_df
        self._prereq_by_key: dict[str, str | None] = {}
        for _, row in courses_df.iterrows():
            key = row["course_key"]
            raw = row["prerequisite"]
            if self._prereq_by_key.get(key) is None:
                self._prereq_by_key[key] = raw if isinstance(raw, str) and raw.strip() else None
        self.catalog_codes = set(self._prereq_by_key)

    def __len__(self) -> int:
        return len(self.courses_df)

    def prerequisite_for(self, course_key: str) -> str | None:
        return self._prereq_by_key.get(course_key)

    def records(self, df: pd.DataFrame | None = None) -> list[dict]:
        df = self.courses_df if df is None else df
        out = df[CATALOG_COLUMNS].copy()
        out["course_number"] = pd.Series(
            [int(v) for v in out["course_number"]], index=out.index, dtype=object
        )
        out["credits"] = pd.Series(
            [int(v) if pd.notna(v) else None for v in pd.to_numeric(out["credits"], errors="coerce")],
            index=out.index,
            dtype=object,
        )
        # Object dtype so None survives instead of being re-coerced to NaN.
        out = out.astype(object).where(pd.notna(out), None)
        return out.to_dict(orient="records")

    def search(self, query: str, limit: int = 50) -> list[dict]:
        """Case-insensitive substring match on 'subject number section name'."""
        q = (query or "").strip().lower()
        df = self.courses_df
        if q:
            df = df[df["search_index"].str.contains(q, regex=False)]
        return self.records(df.head(limit))


def _read_catalog_frames(data_path: str) -> pd.DataFrame:
    # Read everything as text so sections like "001" keep their leading zeros.
    read_kwargs = {"dtype": str}
    if os.path.isdir(data_path):
        files = sorted(f for f in os.listdir(data_path) if f.endswith(".csv"))
        if not files:
            raise FileNotFoundError(f"No catalog CSV files in {data_path}")
        return pd.concat(
            [pd.read_csv(os.path.join(data_path, f), **read_kwargs) for f in files],
            ignore_index=True,
        )
    return pd.read_csv(data_path, **read_kwargs)


def load_catalog(data_path: str) -> CourseCatalog:
    """Load and normalize the course catalog CSV(s). Raises on file/schema errors."""
    courses_df = _read_catalog_frames(data_path)

    missing = [c for c in REQUIRED_COLUMNS if c not in courses_df.columns]
    if missing:
        raise ValueError(f"Catalog is missing required column(s): {missing}")
    for col in ("section", "prerequisite"):
        if col not in courses_df.columns:
            courses_df[col] = None

    courses_df["course_number"] = pd.to_numeric(courses_df["course_number"], errors="coerce")
    dropped = int(courses_df["course_number"].isna().sum())
    if dropped:
        print(f"[WARN] Dropping {dropped} catalog row(s) without a numeric course_number")
    courses_df = courses_df.dropna(subset=["course_number"]).copy()
    courses_df["course_number"] = courses_df["course_number"].astype(int)

    courses_df["subject"] = courses_df["subject"].astype(str).str.strip().str.upper()
    courses_df["section"] = courses_df["section"].fillna("").astype(str).str.strip()
    courses_df["name"] = courses_df["name"].fillna("").astype(str).str.strip()
    courses_df["prerequisite"] = courses_df["prerequisite"].where(
        courses_df["prerequisite"].notna(), None
    )
    courses_df["course_key"] = courses_df["subject"] + " " + courses_df["course_number"].astype(str)
    courses_df["search_index"] = (
        courses_df["subject"] + " "
        + courses_df["course_number"].astype(str) + " "
        + courses_df["section"] + " "
        + courses_df["name"]
    ).str.lower()
    courses_df = courses_df.sort_values(
        ["subject", "course_number", "section"], kind="stable"
    ).reset_index(drop=True)

    # ── Load-time integrity checks ─────────────────────────────────────────
    unparseable = sorted({
        key
        for key, raw in zip(courses_df["course_key"], courses_df["prerequisite"])
        if isinstance(raw, str) and raw.strip() and parse_prerequisite(raw) is None
    })
    if unparseable:
        print(
            f"[WARN] {len(unparseable)} course(s) have unparseable prerequisites "
            f"(treated as none): {unparseable}"
        )

    return CourseCatalog(courses_df)


def backfill_prerequisites(semesters: list[dict], catalog: CourseCatalog) -> list[dict]:
    """
    Fills in missing course prerequisites from the catalog by canonical key,
    then recomputes the plan. Courses not found in the catalog keep None.
    """
    updated = []
    for semester in semesters:
        courses = []
        for course in semester.get("courses") or []:
            if course.get("prerequisite"):
                courses.append(course)
                continue
            key = canonical_from_planner_name(course.get("name", ""))
            courses.append({**course, "prerequisite": catalog.prerequisite_for(key)})
        updated.append({**semester, "courses": courses})
    return recompute_prereq_statuses(updated)
