import pytest
import sys
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import sitefoil
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())


CORPUS_TEXT = (
    "The quick brown fox jumps over the lazy dog. "
    "The lazy dog sleeps under the warm sun. "
    "A quick red fox runs through the quiet forest. "
    "The forest is quiet and the sun is warm. "
)


def write_png(path: Path, color: str = "white", size=(16, 8)) -> Path:
    """Write a small PNG; distinct colors give distinct bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color=color).save(path, format="PNG")
    return path


def page(body: str, title: str = "Test page") -> str:
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n"
        f"<meta charset=\"utf-8\">\n<title>{title}</title>\n"
        "<style>p { color: #333; }</style>\n"
        "</head>\n<body>\n"
        f"{body}\n"
        "<script>var total = items.length; // the quick fox</script>\n"
        "</body>\n</html>\n"
    )


# Common test fixtures
@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def corpus_text() -> str:
    return CORPUS_TEXT


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A small site: two pages referencing images, a text file, a stylesheet,
    an extension-less image and a nested directory.
    """
    root = tmp_path / "site"
    (root / "blog").mkdir(parents=True)
    (root / "empty").mkdir()

    colors = ["red", "green", "blue", "yellow", "purple"]
    for i, color in enumerate(colors):
        write_png(root / "img" / f"photo{i}.png", color=color)

    (root / "index.html").write_text(page(
        "<h1>Welcome Home</h1>\n"
        f"<p>{CORPUS_TEXT}</p>\n"
        '<p><img src="img/photo0.png" alt="first"> <img src="/img/photo1.png"></p>\n'
        '<p><a href="blog/post.html">Read the blog post</a> or mail info@example.com</p>'
    ), encoding="utf-8")
    (root / "blog" / "post.html").write_text(page(
        "<h2>Forest Notes</h2>\n"
        "<p>The quiet forest hides a quick brown fox and a lazy dog.</p>\n"
        '<p><img src="../img/photo2.png"> <img src="../img/photo3.png?v=2"></p>\n'
        "<pre>do not touch this preformatted text</pre>"
    ), encoding="utf-8")
    (root / "notes.txt").write_text(CORPUS_TEXT * 3, encoding="utf-8")
    (root / "style.css").write_text("body { background: url(img/photo4.png); }\n", encoding="utf-8")
    write_png(root / "img" / "chart.report", color="black")
    return root


@pytest.fixture
def png_writer():
    """Factory writing small PNGs: png_writer(path, color="red")."""
    return write_png


@pytest.fixture
def html_page():
    """Factory wrapping body markup in a full page with style and script."""
    return page
