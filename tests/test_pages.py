from pathlib import Path

from photogallery.config import ThumbnailSize
from photogallery.errors import BuildReport
from photogallery.models import LinkedTitle, PlainTitle, Thumbnail
from photogallery.pages import build_pages, thumbnail_jobs
from photogallery.scanner import scan_input
from photogallery.thumbnails import thumbnail_path

from .conftest import make_image


def fake_thumbnails(directories, skip=()):
    """Thumbnails for every job without encoding anything."""
    images = {i.path: i for d in directories for i in d.images}
    return {
        (path, size): Thumbnail(
            source=images[path],
            size=size,
            relative_path=thumbnail_path(images[path], size),
            dimensions=(60, 40),
            source_dimensions=(120, 80),
            generated_at="2024-01-01T00:00:00+00:00",
        )
        for path, size in thumbnail_jobs(directories)
        if path.name not in skip
    }


def test_scenario_overview(scenario, make_config):
    directories = scan_input(scenario)
    pages = build_pages(directories, fake_thumbnails(directories), make_config(), BuildReport())

    assert len(pages) == 1
    page = pages[0]
    assert page.output_path == Path("index.html")
    assert page.is_overview
    assert [g.slug for g in page.groups] == ["2024-01-01", "2023-05-05"]
    assert [e.name for e in page.groups[0].images] == ["a"]
    assert [e.name for e in page.groups[1].images] == ["b", "c"]
    entry = page.groups[1].images[1]
    assert entry.url == "2023-05-05/c.jpg"
    assert entry.thumbnail_url == "thumbnails/small/2023-05-05/c-jpg.jpg"
    assert entry.anchor == "2023-05-05--c-jpg"
    assert page.groups[0].title == PlainTitle("2024-01-01")


def test_pages_are_reproducible(scenario, make_config):
    directories = scan_input(scenario)
    thumbnails = fake_thumbnails(directories)
    reversed_thumbnails = dict(reversed(list(thumbnails.items())))

    first = build_pages(directories, thumbnails, make_config(), BuildReport())
    second = build_pages(directories, reversed_thumbnails, make_config(), BuildReport())

    assert first == second


def test_markdown_links_title(scenario, make_config):
    (scenario / "2023-05-05" / "index.md").write_text("Story\n\n!image c\n\n!image b\n")
    directories = scan_input(scenario)
    report = BuildReport()

    pages = build_pages(directories, fake_thumbnails(directories), make_config(), report)

    assert len(pages) == 2
    overview, description = pages
    assert overview.groups[1].title == LinkedTitle("2023-05-05", "2023-05-05/index.html")
    assert description.output_path == Path("2023-05-05/index.html")
    assert description.root == "../"
    assert description.parent_url == "index.html#2023-05-05"
    assert description.groups[0].images[0].thumbnail_url.startswith("thumbnails/large/")
    assert description.description_html.index("c-jpg") < description.description_html.index("b-jpg")
    assert report.ok


def test_broken_markdown_falls_back_to_plain_title(scenario, make_config):
    (scenario / "2023-05-05" / "index.md").write_text("!image missing\n")
    directories = scan_input(scenario)
    report = BuildReport()

    pages = build_pages(directories, fake_thumbnails(directories), make_config(), report)

    assert len(pages) == 1
    assert pages[0].groups[1].title == PlainTitle("2023-05-05")
    assert len(report.errors) == 1


def test_images_without_thumbnail_are_omitted(scenario, make_config):
    directories = scan_input(scenario)
    thumbnails = fake_thumbnails(directories, skip={"b.jpg"})

    pages = build_pages(directories, thumbnails, make_config(), BuildReport())

    assert [e.name for e in pages[0].groups[1].images] == ["c"]


def test_large_thumbnails_only_for_described_directories(scenario):
    (scenario / "2023-05-05" / "index.md").write_text("Story")
    jobs = thumbnail_jobs(scan_input(scenario))
    large = sorted(path.name for path, size in jobs if size is ThumbnailSize.LARGE)
    assert large == ["b.jpg", "c.jpg"]


def test_pagination(scenario, make_config):
    make_image(scenario / "2022-02-02" / "d.jpg")
    directories = scan_input(scenario)

    pages = build_pages(
        directories, fake_thumbnails(directories), make_config(groups_per_page=2), BuildReport()
    )

    assert [p.output_path for p in pages] == [Path("index.html"), Path("page-2.html")]
    assert [g.slug for g in pages[0].groups] == ["2024-01-01", "2023-05-05"]
    assert [g.slug for g in pages[1].groups] == ["2022-02-02"]
    assert pages[0].prev_url is None
    assert pages[0].next_url == "page-2.html"
    assert pages[1].prev_url == "index.html"
    assert pages[1].next_url is None


def test_empty_gallery(make_config):
    pages = build_pages([], {}, make_config(), BuildReport())
    assert len(pages) == 1
    assert pages[0].groups == []
