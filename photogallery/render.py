"""HTML rendering of pages plus the static CSS and lightbox script."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from jinja2 import Environment, StrictUndefined
from markupsafe import Markup

from .config import ASSETS_DIR
from .models import LinkedTitle, Page

_jinja_env = Environment(autoescape=True, undefined=StrictUndefined, keep_trailing_newline=True)
_jinja_env.tests["linked"] = lambda title: isinstance(title, LinkedTitle)
Template = _jinja_env.from_string

# ---------------------------------------------------------------------------
# Static assets (written to assets/)
# ---------------------------------------------------------------------------

SHARED_CSS = """\
/* ── base ── */
body {
  margin: 0; padding: 24px;
  font: 15px/1.6 system-ui, sans-serif;
  background: #111; color: #ccc;
}
a { color: #8bbde0; text-decoration: none; }
h1 { font-size: 1.5em; font-weight: 500; margin: 0 0 24px; }

/* ── image groups ── */
.group { margin-bottom: 36px; }
.group-header {
  font-size: 1.05em; font-weight: 500; color: #999;
  margin: 0 0 10px; padding: 10px 0 6px;
  border-bottom: 1px solid #222;
}
.group-header span { font-size: 0.75em; color: #555; font-weight: 400; margin-left: 6px; }
.grid {
  display: grid;
  grid-template-columns: repeat(auto-fill, minmax(220px, 1fr));
  gap: 4px;
}
.grid a { display: block; aspect-ratio: 3 / 2; overflow: hidden; border-radius: 2px; }
.grid img {
  width: 100%; height: 100%; object-fit: cover; display: block;
  transition: transform 0.25s ease, filter 0.25s ease;
}
.grid a:hover img { transform: scale(1.04); filter: brightness(1.15); }

/* ── description pages ── */
.description { max-width: 960px; margin: 0 auto; line-height: 1.65; color: #b0b0b0; }
.date { color: #666; font-size: 0.88em; margin: -20px 0 20px; }
.card { margin: 20px 0; }
.card img { max-width: 100%; height: auto; display: block; border-radius: 3px; }

/* ── navigation ── */
.nav {
  margin: 20px 0; padding: 12px 0;
  border-top: 1px solid #1a1a1a;
  font-size: 0.88em; display: flex; gap: 16px;
}
.nav a { color: #666; }
.nav a:hover { color: #aaa; }
footer { font-size: 0.82em; color: #555; margin-top: 32px; padding-top: 16px; border-top: 1px solid #1a1a1a; }

/* ── lightbox ── */
.lightbox {
  position: fixed; inset: 0; z-index: 100;
  background: rgba(0, 0, 0, 0.94);
  display: none; align-items: center; justify-content: center;
}
.lightbox.open { display: flex; }
.lightbox img { max-width: 96vw; max-height: 90vh; }
.lightbox .caption {
  position: absolute; bottom: 12px; left: 0; right: 0;
  text-align: center; color: #999; font-size: 0.88em;
}

/* ── responsive ── */
@media (max-width: 640px) {
  body { padding: 14px; }
  h1 { font-size: 1.3em; }
  .grid { grid-template-columns: repeat(auto-fill, minmax(140px, 1fr)); gap: 2px; }
}
"""

LIGHTBOX_JS = """\
(function() {
  var links = Array.from(document.querySelectorAll('a[data-lightbox]'));
  if (!links.length) return;

  var box = document.createElement('div');
  box.className = 'lightbox';
  box.innerHTML = '<img alt=""><div class="caption"></div>';
  document.body.appendChild(box);
  var img = box.querySelector('img');
  var caption = box.querySelector('.caption');
  var current = -1;

  function show(i) {
    if (i < 0 || i >= links.length) return;
    current = i;
    img.src = links[i].href;
    caption.textContent = links[i].title;
    box.classList.add('open');
    history.replaceState(null, '', '#' + links[i].dataset.lightbox);
  }

  function hide() {
    current = -1;
    box.classList.remove('open');
    img.removeAttribute('src');
    history.replaceState(null, '', location.pathname + location.search);
  }

  links.forEach(function(a, i) {
    a.addEventListener('click', function(e) {
      e.preventDefault();
      show(i);
    });
  });

  box.addEventListener('click', hide);

  document.addEventListener('keydown', function(e) {
    if (current < 0) return;
    if (e.key === 'Escape') hide();
    else if (e.key === 'ArrowRight') show(current + 1);
    else if (e.key === 'ArrowLeft') show(current - 1);
  });

  var anchor = decodeURIComponent(location.hash.slice(1));
  if (anchor) {
    show(links.findIndex(function(a) { return a.dataset.lightbox === anchor; }));
  }
})();
"""

STATIC_ASSETS = {
    "style.css": SHARED_CSS,
    "lightbox.js": LIGHTBOX_JS,
}

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

OVERVIEW_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ page.title }}</title>
<link rel="stylesheet" href="{{ page.root }}assets/style.css">
</head>
<body>
<h1>{{ page.title }}</h1>
{% for group in page.groups %}
<section class="group" id="{{ group.slug }}">
<h2 class="group-header">{% if group.title is linked %}<a href="{{ group.title.url }}">{{ group.title.text }}</a>{% else %}{{ group.title.text }}{% endif %} <span>{{ group.date.isoformat() }}</span></h2>
<div class="grid">
{% for image in group.images %}<a href="{{ image.url }}" id="{{ image.anchor }}" data-lightbox="{{ image.anchor }}" title="{{ image.name }}"><img src="{{ image.thumbnail_url }}" width="{{ image.width }}" height="{{ image.height }}" alt="{{ image.name }}" loading="lazy"></a>
{% endfor %}
</div>
</section>
{% endfor %}
{% if page.prev_url or page.next_url %}
<div class="nav">
  {% if page.prev_url %}<a href="{{ page.prev_url }}">&larr; newer</a>{% endif %}
  {% if page.next_url %}<a href="{{ page.next_url }}">older &rarr;</a>{% endif %}
</div>
{% endif %}
{% if footer %}<footer>{{ footer }}</footer>{% endif %}
<script src="{{ page.root }}assets/lightbox.js"></script>
</body>
</html>
""")

DESCRIPTION_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ page.title }}</title>
<link rel="stylesheet" href="{{ page.root }}assets/style.css">
</head>
<body>
<div class="description">
<div class="nav"><a href="{{ page.root }}{{ page.parent_url }}">&larr; all photos</a></div>
<h1>{{ page.title }}</h1>
<div class="date">{{ page.groups[0].date.isoformat() }}</div>
{{ description }}
{% if footer %}<footer>{{ footer }}</footer>{% endif %}
</div>
<script src="{{ page.root }}assets/lightbox.js"></script>
</body>
</html>
""")


def render_page(page: Page) -> str:
    """Render a page to HTML. The footer and description are trusted HTML."""
    footer = Markup(page.footer) if page.footer else None
    if page.is_overview:
        return OVERVIEW_TEMPLATE.render(page=page, footer=footer)
    return DESCRIPTION_TEMPLATE.render(
        page=page,
        footer=footer,
        description=Markup(page.description_html),
    )


def static_assets() -> Dict[Path, str]:
    """Static files keyed by their path relative to the output root."""
    return {Path(ASSETS_DIR) / name: content for name, content in STATIC_ASSETS.items()}
