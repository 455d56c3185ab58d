# core/frontend.py
"""Статическая страница с iframe для просмотра сайтов через прокси"""

LANGUAGE_OPTIONS = (
    ('fr', 'French'),
    ('de', 'German'),
    ('es', 'Spanish'),
    ('it', 'Italian'),
    ('pt', 'Portuguese'),
    ('ru', 'Russian'),
    ('uk', 'Ukrainian'),
    ('pl', 'Polish'),
    ('tr', 'Turkish'),
    ('ja', 'Japanese'),
    ('ko', 'Korean'),
    ('zh', 'Chinese'),
    ('ar', 'Arabic'),
    ('en', 'English'),
)

INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Translation Proxy</title></head>
<body>
    <input id="urlInput" placeholder="Enter purchase link" style="width: 70%;">
    <select id="langSelect">
{options}
    </select>
    <button id="loadButton" onclick="loadPage()" disabled>Load</button>
    <span id="status">Loading translation model...</span>
    <iframe id="proxyFrame" style="width:100%; height:80vh; border:none;"></iframe>
    <script>
        function loadPage() {{
            const url = document.getElementById('urlInput').value;
            const lang = document.getElementById('langSelect').value;
            if (url) {{
                document.getElementById('proxyFrame').src =
                    '/proxy?url=' + encodeURIComponent(url) + '&lang=' + encodeURIComponent(lang);
            }}
        }}

        function pollStatus() {{
            fetch('/status').then(r => r.json()).then(data => {{
                const status = document.getElementById('status');
                if (data.ready) {{
                    status.textContent = 'Model ready';
                    document.getElementById('loadButton').disabled = false;
                    return;
                }}
                if (data.state === 'load_failed') {{
                    status.textContent = 'Model failed to load';
                    return;
                }}
                status.textContent = 'Loading translation model... ~' + Math.ceil(data.remaining) + 's';
                setTimeout(pollStatus, {poll_interval_ms});
            }}).catch(() => setTimeout(pollStatus, {poll_interval_ms}));
        }}

        pollStatus();
    </script>
</body>
</html>
"""


def render_index(default_lang: str = 'fr', poll_interval_ms: int = 2000) -> str:
    """
    Args:
        default_lang: Язык, выбранный по умолчанию
        poll_interval_ms: Интервал опроса /status

    Returns:
        str: HTML главной страницы
    """
    options = '\n'.join(
        f'        <option value="{code}"{" selected" if code == default_lang else ""}>{name}</option>'
        for code, name in LANGUAGE_OPTIONS
    )
    return INDEX_TEMPLATE.format(options=options, poll_interval_ms=poll_interval_ms)
