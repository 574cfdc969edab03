import pandas as pd
import pytest

from rcm_dashboard.pagination import clamp_page, page_window, paginate, total_pages


@pytest.fixture
def rows():
    return pd.DataFrame({"id": [str(i) for i in range(23)]})


def test_total_pages():
    assert total_pages(0) == 0
    assert total_pages(10) == 1
    assert total_pages(23, 10) == 3
    with pytest.raises(ValueError):
        total_pages(5, 0)


def test_clamp_page():
    assert clamp_page(0, 3) == 1
    assert clamp_page(9, 3) == 3
    assert clamp_page(4, 0) == 1


@pytest.mark.parametrize(
    "page, pages, expected",
    [
        (1, 3, [1, 2, 3]),
        (5, 10, [3, 4, 5, 6, 7]),
        (10, 10, [6, 7, 8, 9, 10]),
        (1, 10, [1, 2, 3, 4, 5]),
        (2, 0, []),
    ],
)
def test_page_window(page, pages, expected):
    assert page_window(page, pages) == expected


def test_last_page_is_partial(rows):
    page = paginate(rows, 3)
    assert page.total_pages == 3
    assert page.rows["id"].tolist() == ["20", "21", "22"]
    assert page.has_previous
    assert not page.has_next


def test_page_number_is_clamped(rows):
    assert paginate(rows, 99).page_number == 3
    assert paginate(rows, -1).page_number == 1


def test_pages_cover_every_row_once(rows):
    pages = [paginate(rows, n).rows for n in range(1, total_pages(len(rows)) + 1)]
    assert pd.concat(pages)["id"].tolist() == rows["id"].tolist()


def test_empty_frame(rows):
    page = paginate(rows.iloc[0:0])
    assert page.total_pages == 0
    assert page.page_number == 1
    assert page.window == []
    assert page.rows.empty
    assert not page.has_next
