"""
Test the carving engine against synthetic buffers with embedded signatures.
Covers: catalog shape, pattern matcher, extent resolver, carve().
"""
from rawcarve.signatures import (
    FILE_SIGNATURES, SignatureDescriptor, Inclusive, Exclusive, UNBOUNDED,
    get_all_categories, get_extensions, select_signatures,
)
from rawcarve.matcher import find_all, find_first
from rawcarve.extent import resolve_extent
from rawcarve.scanner import CandidateRecord, Carver, carve, iter_carve, carve_descriptor


def _index_of(ext: str, header: bytes) -> int:
    for i, sig in enumerate(FILE_SIGNATURES):
        if sig.extension == ext and sig.header == header:
            return i
    raise KeyError(ext)


OLE_LONG = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1\x00\x00"
FTYP = b"\x00\x00\x00\x20ftyp"


def test_catalog_shape():
    print("── Test: catalog ──")
    assert len(FILE_SIGNATURES) > 0
    for sig in FILE_SIGNATURES:
        assert sig.header, sig
        assert sig.size_bound > 0
        assert sig.footer is None or isinstance(sig.footer, (Inclusive, Exclusive))

    pdf = FILE_SIGNATURES[_index_of("pdf", b"%PDF-")]
    assert pdf.footer == Inclusive(b"%%EOF")
    zip_sig = FILE_SIGNATURES[_index_of("zip", b"PK\x03\x04")]
    assert zip_sig.footer == Inclusive(b"\x50\x4B\x05\x06")
    gif89 = FILE_SIGNATURES[_index_of("gif", b"GIF89a")]
    assert gif89.size_bound == 5_000_000

    assert "Image" in get_all_categories()
    assert "jpg" in get_extensions()
    print("  ✅ catalog: PASS")


def test_descriptor_validation():
    for bad in (
        dict(extension="x", size_bound=10, header=b""),
        dict(extension="x", size_bound=-1, header=b"AB"),
        dict(extension="x", size_bound=10, header=b"AB", footer=Inclusive(b"")),
    ):
        try:
            SignatureDescriptor(**bad)
        except ValueError:
            continue
        raise AssertionError(f"accepted malformed descriptor {bad}")


def test_select_signatures_keeps_order():
    sub = select_signatures(FILE_SIGNATURES, extensions={"jpg", "gif"})
    assert [s.extension for s in sub] == ["gif", "gif", "jpg", "jpg"]
    docs = select_signatures(FILE_SIGNATURES, categories={"Document"})
    assert all(s.category == "Document" for s in docs)
    assert select_signatures(FILE_SIGNATURES) == FILE_SIGNATURES


def test_find_all():
    print("── Test: pattern matcher ──")
    assert find_all(b"aaaa", b"aa") == [0, 1, 2]
    assert find_all(b"xxABxxABx", b"AB") == [2, 6]
    assert find_all(b"AB", b"ABC") == []
    assert find_all(b"", b"A") == []
    assert find_all(b"ABAB", b"AB", start=1) == [2]
    assert find_all(b"ABAB", b"AB", end=3) == [0]
    assert find_all(bytearray(b"zzAB"), b"AB") == [2]
    try:
        find_all(b"abc", b"")
    except ValueError:
        pass
    else:
        raise AssertionError("empty pattern accepted")
    print("  ✅ pattern matcher: PASS")


def test_find_first():
    assert find_first(b"..EOF..EOF", b"EOF") == 2
    assert find_first(b"..EOF..EOF", b"EOF", 3) == 7
    assert find_first(b"..EOF", b"EOF", 10) is None
    assert find_first(b"EO", b"EOF") is None


def test_resolve_no_footer():
    sig = SignatureDescriptor("bin", 100, b"HDR")
    data = b"..HDR" + b"z" * 500
    assert resolve_extent(data, 2, sig) == 100
    short = b"..HDR" + b"z" * 10
    assert resolve_extent(short, 2, sig) == 13

    unbounded = SignatureDescriptor("bin", UNBOUNDED, b"HDR")
    assert resolve_extent(data, 2, unbounded) == len(data) - 2


def test_resolve_inclusive_footer():
    sig = SignatureDescriptor("x", 10, b"<<", Inclusive(b">>"))
    data = b"__<<" + b"abcdefghijklmnop" + b">>" + b"__>>"
    length = resolve_extent(data, 2, sig)
    # Found footer wins over the smaller size bound
    assert length == 2 + 16 + 2
    f = 16
    assert data[2 + 2 + f:2 + 2 + f + 2] == b">>"


def test_resolve_exclusive_footer():
    sig = SignatureDescriptor("x", 1000, b"<<", Exclusive(b">>"))
    data = b"<<abc>>tail"
    assert resolve_extent(data, 0, sig) == 2 + 3
    assert data[:resolve_extent(data, 0, sig)] == b"<<abc"


def test_resolve_footer_search_starts_after_header():
    sig = SignatureDescriptor("x", 1000, b"<<>>", Inclusive(b">>"))
    data = b"<<>>abc>>"
    assert resolve_extent(data, 0, sig) == 9


def test_resolve_missing_footer_falls_back():
    sig = SignatureDescriptor("x", 8, b"<<", Inclusive(b">>"))
    assert resolve_extent(b"<<" + b"a" * 20, 0, sig) == 8
    assert resolve_extent(b"<<abc", 0, sig) == 5


def test_resolve_offset_past_end():
    sig = SignatureDescriptor("x", 8, b"<<")
    assert resolve_extent(b"<<", 2, sig) == 0
    assert resolve_extent(b"<<", 50, sig) == 0


def test_pdf_scenario():
    print("── Test: PDF scenario ──")
    data = b"XX" + b"%PDF-" + b"body" + b"%%EOF" + b"YY"
    records = carve(data)
    assert len(records) == 1, records
    rec = records[0]
    assert rec.extension == "pdf"
    assert rec.offset == 2
    assert rec.length == 14
    assert data[rec.offset:rec.end] == b"%PDF-body%%EOF"
    print("  ✅ PDF scenario: PASS")


def test_gif_without_terminator():
    filler = b"\xAA" * 3000
    data = b"\x11" * 7 + b"GIF89a" + filler
    records = carve(data)
    assert len(records) == 1
    rec = records[0]
    assert rec.extension == "gif"
    assert rec.offset == 7
    assert rec.length == min(5_000_000, len(data) - 7)


def test_empty_buffer():
    assert carve(b"") == []
    for index, sig in enumerate(FILE_SIGNATURES):
        assert carve_descriptor(b"", index, sig) == []


def test_header_longer_than_buffer():
    sig = SignatureDescriptor("long", 100, b"ABCDEFGH")
    assert carve(b"ABC", [sig]) == []
    assert carve(b"ABCDEFG", [sig]) == []


def test_single_header_no_footer():
    sig = SignatureDescriptor("bin", 64, b"MAGIC")
    data = b"\x01" * 10 + b"MAGIC" + b"\x02" * 30
    assert carve(data, [sig]) == [CandidateRecord(0, 10, 35)]


def test_overlapping_descriptors_both_reported():
    print("── Test: overlap ──")
    data = FTYP + b"isom" + b"\x11" * 100
    records = carve(data)
    by_ext = {r.extension: r for r in records}
    assert set(by_ext) == {"mov", "mp4"}
    assert by_ext["mov"].offset == by_ext["mp4"].offset == 0
    assert by_ext["mov"].length == by_ext["mp4"].length == len(data)
    assert by_ext["mov"].descriptor_index < by_ext["mp4"].descriptor_index
    print("  ✅ overlap: PASS")


def test_exclusive_ole_entries():
    data = OLE_LONG + b"x" * 50 + OLE_LONG + b"y" * 20
    records = carve(data)
    long_idx = _index_of("doc", OLE_LONG)
    short_idx = _index_of("doc", OLE_LONG[:6])
    by_key = {(r.descriptor_index, r.offset): r.length for r in records}
    assert by_key == {
        (long_idx, 0): 60,          # stops right before the next compound file
        (long_idx, 60): 30,         # no next header: rest of the buffer
        (short_idx, 0): 90,
        (short_idx, 60): 30,
    }


def test_record_order_and_idempotence():
    data = (b"\x11" * 5 + b"%PDF-1.4 a %%EOF" + b"\x11" * 5
            + b"<html><body></body></html>" + b"%PDF-x%%EOF")
    first = carve(data)
    second = carve(data)
    assert first == second
    keys = [(r.descriptor_index, r.offset) for r in first]
    assert keys == sorted(keys)
    assert list(iter_carve(data)) == first
    assert len({(r.offset, r.descriptor_index) for r in first}) == len(first)


def test_candidate_record_helpers():
    sig = SignatureDescriptor("bin", 64, b"MAGIC")
    rec = carve(b"\x00" * 1024 + b"MAGIC" + b"\x00" * 10, [sig])[0]
    assert rec.descriptor is sig
    assert rec.extension == "bin"
    assert rec.sector == 2
    assert rec.end == 1024 + 15
    assert rec.size_human == "15.0 B"


def test_carver_progress_and_cancel():
    print("── Test: Carver cancel ──")
    catalog = [
        SignatureDescriptor("a", 10, b"AA"),
        SignatureDescriptor("b", 10, b"BB"),
        SignatureDescriptor("c", 10, b"CC"),
    ]
    data = b"AA..BB..CC"

    carver = Carver(catalog)
    updates = []
    carver.set_progress_callback(lambda p: updates.append(p.descriptors_done))
    full = carver.scan(data)
    assert [r.extension for r in full] == ["a", "b", "c"]
    assert updates and updates[-1] == 3
    assert carver.progress.candidates_found == 3
    assert carver.progress.progress_percent == 100.0

    carver = Carver(catalog)
    carver.set_file_found_callback(lambda rec: carver.cancel())
    partial = carver.scan(data)
    assert [r.extension for r in partial] == ["a"]
    assert carver.progress.is_cancelled
    assert carver.progress.descriptors_done == 1
    print("  ✅ Carver cancel: PASS")


def main():
    print("=" * 60)
    print("  Carving Engine — Test Suite")
    print("=" * 60)
    print()

    test_catalog_shape()
    test_descriptor_validation()
    test_select_signatures_keeps_order()
    test_find_all()
    test_find_first()
    test_resolve_no_footer()
    test_resolve_inclusive_footer()
    test_resolve_exclusive_footer()
    test_resolve_footer_search_starts_after_header()
    test_resolve_missing_footer_falls_back()
    test_resolve_offset_past_end()
    test_pdf_scenario()
    test_gif_without_terminator()
    test_empty_buffer()
    test_header_longer_than_buffer()
    test_single_header_no_footer()
    test_overlapping_descriptors_both_reported()
    test_exclusive_ole_entries()
    test_record_order_and_idempotence()
    test_candidate_record_helpers()
    test_carver_progress_and_cancel()

    print()
    print("=" * 60)
    print("  ALL TESTS PASSED ✅")
    print("=" * 60)


if __name__ == "__main__":
    main()
