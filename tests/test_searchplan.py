import pytest

from pulsesift.coords import get_s_radec
from pulsesift.searchplan import (
    SearchPlan,
    build_plans,
    format_beam,
    parse_ddplan,
    parse_rfi_options,
    width_series,
)


def test_format_beam_coherent():
    assert format_beam(1, False) == "cfbf00001"


def test_format_beam_incoherent():
    assert format_beam(12, True) == "ifbf00012"


def test_format_beam_accepts_string():
    assert format_beam("7") == format_beam(7)


def test_parse_rfi_options_mixed():
    rfilist, zaplist = parse_rfi_options(
        ["mask", "2", "4", "zap", "1000", "1100", "zdot", "kadaneT", "8", "1", "zero"]
    )
    assert rfilist == [("mask", 2, 4), ("zdot",), ("kadaneT", 8, 1), ("zero",)]
    assert zaplist == [(1000.0, 1100.0)]


def test_parse_rfi_options_ignores_unknown():
    rfilist, zaplist = parse_rfi_options(["bogus", "kadaneF", "1", "2"])
    assert rfilist == [("kadaneF", 1, 2)]
    assert zaplist == []


def test_parse_rfi_options_missing_arguments():
    with pytest.raises(ValueError):
        parse_rfi_options(["mask", "2"])
    with pytest.raises(ValueError):
        parse_rfi_options(["zap", "1000"])


def test_width_series_no_loss_is_consecutive():
    assert width_series(1.0, 5.0, 1.0, 0.0) == [1, 2, 3, 4, 5]


def test_width_series_invariants():
    tsamp = 1e-4
    widths = width_series(1e-4, 2e-2, tsamp, 0.1)
    assert widths[0] == 1
    assert all(b > a for a, b in zip(widths, widths[1:]))
    assert widths[-1] * tsamp <= 2e-2


def test_width_series_raises_minimum_to_tsamp():
    assert width_series(1e-6, 1e-2, 1e-3, 0.1)[0] == 1


def test_width_series_bad_arguments():
    with pytest.raises(ValueError):
        width_series(1e-4, 1e-2, 0.0, 0.1)
    with pytest.raises(ValueError):
        width_series(1e-4, 1e-2, 1e-4, 1.0)


def test_prepare_widths_sets_fields():
    plan = SearchPlan(minw=1e-6, maxw=1e-2, snrloss=0.1, format="presto")
    widths = plan.prepare_widths(1e-3)
    assert plan.minw == 1e-3
    assert plan.vwn == widths
    assert plan.nbox == len(widths)
    assert plan.outnbits == 32


def test_prepare_widths_keeps_nbits_for_other_formats():
    plan = SearchPlan(outnbits=8, format="sigproc")
    plan.prepare_widths(1e-4)
    assert plan.outnbits == 8


def test_build_obsinfo():
    plan = SearchPlan(src_raj=123456.7, src_dej=-112233.4, ibeam=3, source_name="J1234-11")
    info = plan.build_obsinfo()
    s_ra, s_dec = get_s_radec(123456.7, -112233.4)
    assert info["RA"] == s_ra
    assert info["DEC"] == s_dec
    assert info["Beam"] == format_beam(3, False)
    assert info["Source_name"] == "J1234-11"
    assert plan.obsinfo is info


def test_parse_ddplan_skips_comments_and_accumulates_rfi():
    base = SearchPlan(rfilist=[("zero",)])
    lines = [
        "# td fd dms ddm ndm snrloss maxw",
        "",
        "1 2 0 0.5 100 0.1 0.01 mask 2 4",
        "  2 1 50 1 200 0.2 0.05 zap 1000 1100",
    ]
    plans = parse_ddplan(lines, base)
    assert [p.id for p in plans] == [1, 2]
    first, second = plans
    assert (first.td, first.fd, first.dms, first.ddm, first.ndm) == (1, 2, 0.0, 0.5, 100)
    assert (first.snrloss, first.maxw) == (0.1, 0.01)
    assert first.rfilist == [("zero",), ("mask", 2, 4)]
    assert first.zaplist == []
    assert second.rfilist == [("zero",), ("mask", 2, 4)]
    assert second.zaplist == [(1000.0, 1100.0)]
    assert base.rfilist == [("zero",)]


def test_parse_ddplan_short_line():
    with pytest.raises(ValueError):
        parse_ddplan(["1 2 3"], SearchPlan())


def test_build_plans_without_file():
    base = SearchPlan(id=5, dms=10.0)
    plans = build_plans(base)
    assert len(plans) == 1
    assert plans[0].id == 1
    assert plans[0].dms == 10.0
    plans[0].rfilist.append(("zdot",))
    assert base.rfilist == []


def test_build_plans_from_file(tmp_path):
    path = tmp_path / "ddplan.txt"
    path.write_text("#comment\n1 1 0 1 10 0.1 0.02\n4 2 100 2 50 0.1 0.02 zdot\n")
    plans = build_plans(SearchPlan(), path)
    assert [p.id for p in plans] == [1, 2]
    assert plans[1].td == 4
    assert plans[1].rfilist == [("zdot",)]


def test_build_plans_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_plans(SearchPlan(), tmp_path / "absent.txt")