from datetime import datetime

from phototidy import config
from phototidy.core import Classifier
from phototidy.exceptions import TimeUnavailable
from phototidy.metadata.resolver import TimeResolver
from phototidy.models import Outcome, Provenance


def qt(dt):
    return int(dt.timestamp()) + config.BMFF_EPOCH_OFFSET


def tree(root):
    return sorted(str(p.relative_to(root)) for p in root.rglob("*") if p.is_file())


TS = datetime(2025, 1, 5, 10, 0, 0)


def test_same_second_images_are_numbered(tmp_path, set_mtime):
    for name in ("a.jpg", "b.jpg"):
        f = tmp_path / name
        f.write_bytes(name.encode())
        set_mtime(f, TS)

    summary = Classifier().classify(tmp_path)

    assert tree(tmp_path) == [
        "2025-01/IMG_20250105_100000_001.jpg",
        "2025-01/IMG_20250105_100000_002.jpg",
    ]
    assert summary.moved == 2
    assert summary.skipped == 0


def test_third_same_second_file_joins_the_run(tmp_path, set_mtime):
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        f = tmp_path / name
        f.write_bytes(name.encode())
        set_mtime(f, TS)

    Classifier().classify(tmp_path)

    assert tree(tmp_path) == [
        "2025-01/IMG_20250105_100000_001.jpg",
        "2025-01/IMG_20250105_100000_002.jpg",
        "2025-01/IMG_20250105_100000_003.jpg",
    ]


def test_second_run_changes_nothing(tmp_path, make_exif_jpeg, make_mp4, set_mtime):
    make_exif_jpeg(tmp_path / "photo.jpg", "2021:03:04 05:06:07")
    sub = tmp_path / "phone"
    sub.mkdir()
    make_mp4(sub / "clip.mp4", movie=qt(datetime(2024, 7, 1, 9, 30, 0)))
    other = tmp_path / "x.png"
    other.write_bytes(b"png")
    set_mtime(other, TS)

    first = Classifier().classify(tmp_path)
    after_first = tree(tmp_path)

    assert first.moved == 3
    assert after_first == [
        "2021-03/IMG_20210304_050607.jpg",
        "2024-07/VID_20240701_093000.mp4",
        "2025-01/IMG_20250105_100000.png",
    ]

    second = Classifier().classify(tmp_path)

    assert tree(tmp_path) == after_first
    assert second.moved == 0
    assert second.found == 0
    assert second.already_classified == 3


def test_already_classified_file_is_left_alone(tmp_path, set_mtime):
    month = tmp_path / "2025-01"
    month.mkdir()
    f = month / "anything.jpg"
    f.write_bytes(b"x")
    set_mtime(f, datetime(2010, 6, 6, 6, 6, 6))

    summary = Classifier().classify(tmp_path)

    assert tree(tmp_path) == ["2025-01/anything.jpg"]
    assert summary.already_classified == 1
    assert summary.results[0].outcome is Outcome.ALREADY_CLASSIFIED


def test_canonical_name_kept_when_moving(tmp_path, set_mtime):
    f = tmp_path / "IMG_20250105_100000_007.jpg"
    f.write_bytes(b"x")
    set_mtime(f, datetime(2023, 8, 8, 8, 8, 8))

    summary = Classifier().classify(tmp_path)

    assert tree(tmp_path) == ["2023-08/IMG_20250105_100000_007.jpg"]
    assert summary.renamed == 0


def test_existing_target_is_skipped(tmp_path, set_mtime):
    month = tmp_path / "2025-01"
    month.mkdir()
    (month / "IMG_20250105_100000_007.jpg").write_bytes(b"keep me")
    f = tmp_path / "IMG_20250105_100000_007.jpg"
    f.write_bytes(b"incoming")
    set_mtime(f, TS)

    summary = Classifier().classify(tmp_path)

    skipped = [r for r in summary.results if r.outcome is Outcome.SKIPPED]
    assert len(skipped) == 1
    assert "already exists" in skipped[0].reason
    assert f.read_bytes() == b"incoming"
    assert (month / "IMG_20250105_100000_007.jpg").read_bytes() == b"keep me"


def test_rename_conflict_skips_file(tmp_path, set_mtime):
    month = tmp_path / "2025-01"
    month.mkdir()
    (month / "IMG_20250105_100000.jpg").write_bytes(b"bare")
    (month / "IMG_20250105_100000_001.jpg").write_bytes(b"one")
    f = tmp_path / "new.jpg"
    f.write_bytes(b"new")
    set_mtime(f, TS)

    summary = Classifier().classify(tmp_path)

    skipped = [r for r in summary.results if r.outcome is Outcome.SKIPPED]
    assert [r.source.name for r in skipped] == ["new.jpg"]
    assert f.exists()


def test_unresolvable_time_skips_and_continues(tmp_path, set_mtime):
    good = tmp_path / "good.jpg"
    good.write_bytes(b"g")
    set_mtime(good, TS)
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"b")

    class FlakyResolver(TimeResolver):
        def resolve(self, path, kind):
            if path.name == "bad.jpg":
                raise TimeUnavailable("stat failed")
            return super().resolve(path, kind)

    summary = Classifier(resolver=FlakyResolver()).classify(tmp_path)

    assert summary.moved == 1
    assert summary.skipped == 1
    assert bad.exists()


def test_counts_by_provenance(tmp_path, make_exif_jpeg, make_mp4, set_mtime):
    make_exif_jpeg(tmp_path / "a.jpg", "2021:03:04 05:06:07")
    make_mp4(tmp_path / "b.mp4", movie=0, media=[qt(datetime(2024, 7, 1, 9, 30, 0))])
    c = tmp_path / "c.heic"
    c.write_bytes(b"heic")
    set_mtime(c, TS)

    summary = Classifier().classify(tmp_path)

    assert summary.by_provenance == {
        Provenance.EXIF_METADATA: 1,
        Provenance.CONTAINER_METADATA: 1,
        Provenance.FILESYSTEM_MOD_TIME: 1,
    }
    assert summary.found == 3


def test_early_year_capture_is_stable_across_runs(tmp_path, make_exif_jpeg):
    make_exif_jpeg(tmp_path / "old.jpg", "0999:01:02 03:04:05")

    first = Classifier().classify(tmp_path)
    after_first = tree(tmp_path)

    assert first.moved == 1
    assert after_first == ["0999-01/IMG_09990102_030405.jpg"]

    second = Classifier().classify(tmp_path)

    assert tree(tmp_path) == after_first
    assert second.moved == 0
    assert second.skipped == 0
    assert second.already_classified == 1


def test_out_of_range_mtime_skips_without_aborting(monkeypatch, tmp_path):
    import phototidy.metadata.extract as extract_module

    class FarFuture(datetime):
        @classmethod
        def fromtimestamp(cls, ts, tz=None):
            raise OverflowError("timestamp out of range for platform time_t")
    monkeypatch.setattr(extract_module, "datetime", FarFuture)
    for name in ("a.png", "b.png"):
        (tmp_path / name).write_bytes(b"x")

    summary = Classifier().classify(tmp_path)

    assert summary.skipped == 2
    assert all("out of range" in r.reason for r in summary.results)


def test_upper_case_canonical_file_is_renumbered_by_later_arrival(tmp_path, set_mtime):
    month = tmp_path / "2025-01"
    month.mkdir()
    (month / "IMG_20250105_100000.JPG").write_bytes(b"first")
    f = tmp_path / "b.jpg"
    f.write_bytes(b"second")
    set_mtime(f, TS)

    summary = Classifier().classify(tmp_path)

    assert summary.moved == 1
    assert tree(tmp_path) == [
        "2025-01/IMG_20250105_100000_001.JPG",
        "2025-01/IMG_20250105_100000_002.jpg",
    ]
