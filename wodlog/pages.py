from wodlog.constants import DESIRED_CATEGORY_ORDER, DESIRED_TAG_ORDER

NAV_LINKS = [
    ("/", "WODs"),
    ("/favorites", "Favorites"),
    ("/charts", "Charts"),
    ("/import", "Import"),
]

BASE_STYLE = """
    :root {
      --bg: #eef2f7;
      --panel: #ffffff;
      --line: #d7e0eb;
      --text: #172333;
      --muted: #6b7e93;
      --nav: #102947;
      --blue: #1e58d1;
      --purple: #7c3aed;
      --green: #148248;
      --yellow: #b58900;
      --gray: #6b7e93;
      --red: #c0392b;
      --shadow: 0 12px 26px rgba(11, 25, 41, 0.08);
      --radius: 12px;
    }

    * { box-sizing: border-box; }

    body {
      margin: 0;
      color: var(--text);
      font-family: system-ui, -apple-system, "Segoe UI", Roboto, Arial, sans-serif;
      background: linear-gradient(180deg, #f4f7fb 0%, var(--bg) 100%);
    }

    .top-nav {
      position: sticky;
      top: 0;
      z-index: 20;
      display: flex;
      align-items: center;
      gap: 18px;
      padding: 0 16px;
      min-height: 48px;
      background: linear-gradient(180deg, #113154 0%, #0e2843 100%);
    }
    .top-nav .brand { color: #fff; font-weight: 700; letter-spacing: 0.02em; }
    .top-nav a { color: rgba(255,255,255,0.75); text-decoration: none; font-size: 14px; }
    .top-nav a.active, .top-nav a:hover { color: #fff; }
    .top-nav .auth { margin-left: auto; color: #fff; font-size: 13px; display: flex; gap: 10px; }

    main { max-width: 1200px; margin: 20px auto; padding: 0 16px; }
    .panel { background: var(--panel); border: 1px solid var(--line); border-radius: var(--radius); box-shadow: var(--shadow); padding: 16px; margin-bottom: 16px; }
    .row { display: flex; flex-wrap: wrap; gap: 10px; align-items: center; }
    .muted { color: var(--muted); font-size: 13px; }
    .error { color: var(--red); font-size: 13px; min-height: 16px; }
    .hidden { display: none !important; }

    input, select, textarea, button { font: inherit; }
    input, select, textarea { border: 1px solid var(--line); border-radius: 8px; padding: 6px 8px; background: #fff; }
    button { border: 0; border-radius: 8px; padding: 7px 12px; background: var(--blue); color: #fff; cursor: pointer; }
    button.secondary { background: #e6ecf4; color: var(--text); }
    button.danger { background: var(--red); }
    button:disabled { opacity: 0.5; cursor: default; }

    table { width: 100%; border-collapse: collapse; font-size: 14px; }
    th, td { text-align: left; padding: 8px; border-bottom: 1px solid var(--line); vertical-align: top; }
    th { color: var(--muted); font-weight: 600; cursor: pointer; user-select: none; }
    .tag { display: inline-block; font-size: 11px; padding: 1px 6px; margin: 1px; border-radius: 10px; background: #e6ecf4; }
    .badge { font-size: 12px; font-weight: 600; }
    .badge.purple { color: var(--purple); }
    .badge.green { color: var(--green); }
    .badge.yellow { color: var(--yellow); }
    .badge.gray { color: var(--gray); }
    .fav { background: none; color: #f0b429; font-size: 18px; padding: 0 4px; }
    pre.desc { white-space: pre-wrap; font-family: inherit; margin: 4px 0 0; color: var(--muted); font-size: 13px; }

    dialog { border: 1px solid var(--line); border-radius: var(--radius); box-shadow: var(--shadow); min-width: 340px; }
    dialog label { display: block; margin: 8px 0 4px; font-size: 13px; color: var(--muted); }

    .bar-row { display: grid; grid-template-columns: 180px 1fr 48px; gap: 8px; align-items: center; font-size: 13px; margin: 4px 0; }
    .bar { height: 14px; border-radius: 4px; background: var(--blue); }
    .bar.alt { background: var(--purple); }
"""

COMMON_SCRIPT = """
  async function api(path, options = {}) {
    const resp = await fetch('/api' + path, {
      credentials: 'same-origin',
      headers: options.body && typeof options.body === 'string' && !options.raw ? { 'Content-Type': 'application/json' } : {},
      ...options,
    });
    if (!resp.ok) {
      let detail = resp.statusText;
      try { detail = (await resp.json()).detail || detail; } catch (e) {}
      const err = new Error(typeof detail === 'string' ? detail : JSON.stringify(detail));
      err.status = resp.status;
      throw err;
    }
    const type = resp.headers.get('content-type') || '';
    return type.includes('application/json') ? resp.json() : resp.text();
  }

  function esc(value) {
    return String(value ?? '').replace(/[&<>"']/g, (c) => ({ '&': '&amp;', '<': '&lt;', '>': '&gt;', '"': '&quot;', "'": '&#39;' }[c]));
  }

  let currentUser = null;
  async function loadSession() {
    const data = await api('/auth/session');
    currentUser = data.user;
    const box = document.getElementById('auth-box');
    if (currentUser) {
      box.innerHTML = `<span>${esc(currentUser.name || currentUser.email)}</span><a href="/api/auth/logout">Log out</a>`;
    } else {
      box.innerHTML = '<a href="/login">Log in</a><a href="/signup">Sign up</a>';
    }
    return currentUser;
  }
"""


def _nav(active: str) -> str:
    links = "".join(
        f'<a href="{href}" class="{"active" if href == active else ""}">{label}</a>' for href, label in NAV_LINKS
    )
    return f'<nav class="top-nav"><span class="brand">wodlog</span>{links}<div class="auth" id="auth-box"></div></nav>'


def layout(title: str, active: str, body: str, script: str) -> str:
    return (
        """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>__TITLE__ · wodlog</title>
  <style>__STYLE__</style>
</head>
<body>
__NAV__
<main>
__BODY__
</main>
<script>
__COMMON__
__SCRIPT__
</script>
</body>
</html>
"""
        .replace("__TITLE__", title)
        .replace("__STYLE__", BASE_STYLE)
        .replace("__NAV__", _nav(active))
        .replace("__BODY__", body)
        .replace("__COMMON__", COMMON_SCRIPT)
        .replace("__SCRIPT__", script)
    )


def _options(values: list[str], blank: str) -> str:
    return f'<option value="">{blank}</option>' + "".join(f'<option value="{v}">{v}</option>' for v in values)


LOG_SCORE_DIALOG = """
<dialog id="score-dialog">
  <form id="score-form" method="dialog">
    <h3 id="score-title">Log score</h3>
    <input type="hidden" name="score_id" />
    <input type="hidden" name="wod_id" />
    <div id="score-ranges" class="muted"></div>
    <label>Date</label><input type="date" name="score_date" required />
    <label>Time (min : sec)</label>
    <div class="row"><input type="number" min="0" name="minutes" style="width:80px" /> : <input type="number" min="0" max="59" name="seconds" style="width:80px" /></div>
    <label>Reps</label><input type="number" min="0" name="reps" />
    <label>Rounds + partial reps</label>
    <div class="row"><input type="number" min="0" name="rounds_completed" style="width:80px" /> + <input type="number" min="0" name="partial_reps" style="width:80px" /></div>
    <label>Load (lbs)</label><input type="number" min="0" name="load" />
    <label><input type="checkbox" name="is_rx" checked /> Rx</label>
    <label>Notes</label><textarea name="notes" rows="2" style="width:100%"></textarea>
    <div class="error" id="score-error"></div>
    <div class="row" style="justify-content:flex-end">
      <button type="button" class="secondary" id="score-cancel">Cancel</button>
      <button type="submit">Save</button>
    </div>
  </form>
</dialog>
"""

WOD_TABLE_SCRIPT = """
  const state = { sortBy: 'wod_name', sortDirection: 'asc', favorites: new Set(), wods: [], scores: {} };
  const form = document.getElementById('score-form');
  const dialog = document.getElementById('score-dialog');

  function filterParams() {
    const params = new URLSearchParams();
    const search = document.getElementById('search');
    if (search && search.value.trim()) params.set('search', search.value.trim());
    const category = document.getElementById('category');
    if (category && category.value) params.set('category', category.value);
    const tag = document.getElementById('tag');
    if (tag && tag.value) params.append('tags', tag.value);
    const completion = document.getElementById('completion');
    if (completion && completion.value !== 'all' && currentUser) params.set('completion', completion.value);
    params.set('sort_by', state.sortBy);
    params.set('sort_direction', state.sortDirection);
    return params;
  }

  function scoreCell(wod) {
    const scores = state.scores[wod.id] || [];
    if (!scores.length) return '<span class="muted">-</span>';
    return scores.map((s) => `
      <div>
        <span class="badge ${esc(s.badge.color)}">${esc(s.badge.display_level)}</span>
        ${esc(s.display_score)} <span class="muted">${esc(s.display_date)}</span>
        <button class="secondary" data-edit="${esc(s.id)}" data-wod="${esc(wod.id)}">Edit</button>
        <button class="danger" data-delete="${esc(s.id)}">Delete</button>
      </div>`).join('');
  }

  const LEVEL_RANK = { elite: 4, advanced: 3, intermediate: 2, beginner: 1 };

  function bestLevelCell(wod) {
    const scores = (state.scores[wod.id] || []).filter((s) => s.level);
    if (!scores.length) return '<span class="muted">-</span>';
    const best = scores.reduce((a, b) => (LEVEL_RANK[b.level] > LEVEL_RANK[a.level] ? b : a));
    return `<span class="badge ${esc(best.badge.color)}">${esc(best.badge.display_level)}</span>`;
  }

  function render() {
    const body = document.getElementById('wod-rows');
    const wods = FAVORITES_ONLY ? state.wods.filter((w) => state.favorites.has(w.id)) : state.wods;
    document.getElementById('wod-count').textContent = `${wods.length} WODs`;
    body.innerHTML = wods.map((wod) => `
      <tr>
        <td>
          ${currentUser ? `<button class="fav" data-fav="${esc(wod.id)}">${state.favorites.has(wod.id) ? '★' : '☆'}</button>` : ''}
          ${wod.wod_url ? `<a href="${esc(wod.wod_url)}" target="_blank" rel="noopener">${esc(wod.wod_name)}</a>` : esc(wod.wod_name)}
          <pre class="desc">${esc(wod.description)}</pre>
        </td>
        <td>${esc(wod.category)}<br>${(wod.tags || []).map((t) => `<span class="tag">${esc(t)}</span>`).join('')}</td>
        <td>${esc(wod.difficulty)}</td>
        <td>${esc(wod.count_likes)}</td>
        <td>${currentUser ? bestLevelCell(wod) : ''}</td>
        <td>${currentUser ? (state.scores[wod.id] || []).length : ''}</td>
        <td>${currentUser ? scoreCell(wod) + `<button data-log="${esc(wod.id)}">Log score</button>` : '<a href="/login">Log in</a> to log scores'}</td>
      </tr>`).join('');
  }

  async function refresh() {
    try {
      state.wods = await api('/wods?' + filterParams().toString());
      if (currentUser) {
        const [scores, favorites] = await Promise.all([api('/scores'), api('/favorites')]);
        state.scores = {};
        scores.forEach((s) => { (state.scores[s.wod_id] = state.scores[s.wod_id] || []).push(s); });
        state.favorites = new Set(favorites);
      }
      document.getElementById('list-error').textContent = '';
      render();
    } catch (err) {
      document.getElementById('list-error').textContent = err.message;
    }
  }

  async function openScoreDialog(wodId, score) {
    form.reset();
    document.getElementById('score-error').textContent = '';
    const wod = await api('/wods/' + encodeURIComponent(wodId));
    document.getElementById('score-title').textContent = (score ? 'Edit score: ' : 'Log score: ') + wod.wod_name;
    document.getElementById('score-ranges').innerHTML = (wod.benchmark_ranges || [])
      .map((r) => `<span class="badge ${esc(r.color)}">${esc(r.level_name)}</span> ${esc(r.formatted_range)}`).join(' · ')
      + (wod.timecap ? ` · Time cap ${Math.floor(wod.timecap / 60)}:${String(wod.timecap % 60).padStart(2, '0')}` : '');
    form.wod_id.value = wodId;
    form.score_id.value = score ? score.id : '';
    form.score_date.value = score ? score.score_date : new Date().toISOString().slice(0, 10);
    if (score) {
      if (score.time_seconds != null) { form.minutes.value = Math.floor(score.time_seconds / 60); form.seconds.value = score.time_seconds % 60; }
      ['reps', 'rounds_completed', 'partial_reps', 'load'].forEach((k) => { if (score[k] != null) form[k].value = score[k]; });
      form.is_rx.checked = !!score.is_rx;
      form.notes.value = score.notes || '';
    }
    dialog.showModal();
  }

  function intOrNull(value) {
    return value === '' || value == null ? null : parseInt(value, 10);
  }

  form.addEventListener('submit', async (event) => {
    event.preventDefault();
    const hasTime = form.minutes.value !== '' || form.seconds.value !== '';
    const payload = {
      wod_id: form.wod_id.value,
      score_date: form.score_date.value,
      is_rx: form.is_rx.checked,
      notes: form.notes.value,
      time_seconds: hasTime ? (intOrNull(form.minutes.value) || 0) * 60 + (intOrNull(form.seconds.value) || 0) : null,
      reps: intOrNull(form.reps.value),
      rounds_completed: intOrNull(form.rounds_completed.value),
      partial_reps: intOrNull(form.partial_reps.value),
      load: intOrNull(form.load.value),
    };
    try {
      if (form.score_id.value) {
        await api('/scores/' + encodeURIComponent(form.score_id.value), { method: 'PUT', body: JSON.stringify(payload) });
      } else {
        await api('/scores', { method: 'POST', body: JSON.stringify(payload) });
      }
      dialog.close();
      await refresh();
    } catch (err) {
      document.getElementById('score-error').textContent = err.message;
    }
  });
  document.getElementById('score-cancel').addEventListener('click', () => dialog.close());

  document.getElementById('wod-rows').addEventListener('click', async (event) => {
    const el = event.target;
    try {
      if (el.dataset.log) {
        await openScoreDialog(el.dataset.log, null);
      } else if (el.dataset.edit) {
        const score = (state.scores[el.dataset.wod] || []).find((s) => s.id === el.dataset.edit);
        await openScoreDialog(el.dataset.wod, score);
      } else if (el.dataset.delete) {
        if (!confirm('Delete this score?')) return;
        await api('/scores/' + encodeURIComponent(el.dataset.delete), { method: 'DELETE' });
        await refresh();
      } else if (el.dataset.fav) {
        const id = el.dataset.fav;
        if (state.favorites.has(id)) {
          await api('/favorites/' + encodeURIComponent(id), { method: 'DELETE' });
        } else {
          await api('/favorites', { method: 'POST', body: JSON.stringify({ wod_id: id }) });
        }
        await refresh();
      }
    } catch (err) {
      document.getElementById('list-error').textContent = err.message;
    }
  });

  document.querySelectorAll('th[data-sort]').forEach((th) => th.addEventListener('click', () => {
    const key = th.dataset.sort;
    if (state.sortBy === key) {
      state.sortDirection = state.sortDirection === 'asc' ? 'desc' : 'asc';
    } else {
      state.sortBy = key;
      state.sortDirection = 'asc';
    }
    refresh();
  }));
  document.querySelectorAll('.filter').forEach((el) => el.addEventListener('change', refresh));
  const searchBox = document.getElementById('search');
  if (searchBox) {
    let timer = null;
    searchBox.addEventListener('input', () => { clearTimeout(timer); timer = setTimeout(refresh, 250); });
  }

  loadSession().then(refresh);
"""

EXPORT_SCRIPT = """
  document.querySelectorAll('[data-export]').forEach((btn) => btn.addEventListener('click', () => {
    if (!currentUser) { window.location = '/login'; return; }
    window.location = '/api/export?format=' + btn.dataset.export;
  }));
"""


def _wod_table(favorites_only: bool) -> str:
    filters = ""
    if not favorites_only:
        filters = f"""
  <div class="row">
    <input id="search" placeholder='Search name, movement, tag, or "exact phrase"' style="flex:1;min-width:240px" />
    <select id="category" class="filter">{_options(DESIRED_CATEGORY_ORDER, "All categories")}</select>
    <select id="tag" class="filter">{_options(DESIRED_TAG_ORDER, "All tags")}</select>
    <select id="completion" class="filter">
      <option value="all">All</option><option value="done">Done</option><option value="todo">Todo</option>
    </select>
    <button class="secondary" data-export="csv">Export CSV</button>
    <button class="secondary" data-export="json">Export JSON</button>
  </div>"""
    return f"""
<section class="panel">
  {filters}
  <p class="muted" id="wod-count"></p>
  <div class="error" id="list-error"></div>
  <table>
    <thead>
      <tr>
        <th data-sort="wod_name">Name</th>
        <th>Category / Tags</th>
        <th data-sort="difficulty">Difficulty</th>
        <th data-sort="count_likes">Likes</th>
        <th data-sort="level">Best level</th>
        <th data-sort="attempts">Attempts</th>
        <th data-sort="date">Your scores</th>
      </tr>
    </thead>
    <tbody id="wod-rows"></tbody>
  </table>
</section>
{LOG_SCORE_DIALOG}
"""


def wods_page() -> str:
    script = "const FAVORITES_ONLY = false;\n" + WOD_TABLE_SCRIPT + EXPORT_SCRIPT
    return layout("WODs", "/", _wod_table(False), script)


def favorites_page() -> str:
    script = "const FAVORITES_ONLY = true;\n" + WOD_TABLE_SCRIPT
    return layout("Favorites", "/favorites", _wod_table(True), script)


CHARTS_BODY = """
<section class="panel hidden" id="charts-login">
  <p>Charts show your own progress. <a href="/login">Log in</a> to see them.</p>
</section>
<div id="charts" class="hidden">
  <section class="panel"><h3>Workouts per month</h3><div id="frequency"></div></section>
  <section class="panel"><h3>Average adjusted level per month</h3><p class="muted">Level 1 (beginner) to 4 (elite), weighted by difficulty.</p><div id="performance"></div></section>
  <section class="panel"><h3>Completed by category</h3><div id="categories"></div></section>
  <section class="panel"><h3>Completed by tag</h3><div id="tags"></div></section>
  <section class="panel">
    <h3>Movement frequency</h3>
    <div class="row">
      <select id="movement-scope">
        <option value="yours">Your WODs</option>
        <option value="all">All WODs</option>
      </select>
    </div>
    <div id="movements"></div>
  </section>
</div>
"""

CHARTS_SCRIPT = """
  function bars(target, entries, alt) {
    const el = document.getElementById(target);
    if (!entries.length) { el.innerHTML = '<p class="muted">No data yet.</p>'; return; }
    const max = Math.max(...entries.map((e) => e[1])) || 1;
    el.innerHTML = entries.map(([label, value]) => `
      <div class="bar-row">
        <span>${esc(label)}</span>
        <div class="bar ${alt ? 'alt' : ''}" style="width:${Math.max(2, (value / max) * 100)}%"></div>
        <span>${esc(value)}</span>
      </div>`).join('');
  }

  function movementEntries(counts) {
    return Object.entries(counts).map(([name, v]) => [name, v.count]).sort((a, b) => b[1] - a[1]).slice(0, 20);
  }

  loadSession().then(async (user) => {
    if (!user) { document.getElementById('charts-login').classList.remove('hidden'); return; }
    const data = await api('/charts');
    document.getElementById('charts').classList.remove('hidden');
    bars('frequency', data.frequency_data.map((p) => [p.month, p.count]));
    bars('performance', data.performance_data.map((p) => [p.month, p.average_level]), true);
    bars('categories', Object.entries(data.category_counts).sort((a, b) => b[1] - a[1]));
    bars('tags', Object.entries(data.tag_counts).sort((a, b) => b[1] - a[1]));
    const scope = document.getElementById('movement-scope');
    const draw = () => bars('movements', movementEntries(scope.value === 'all' ? data.all_movement_counts : data.your_movement_counts));
    scope.addEventListener('change', draw);
    draw();
  });
"""


def charts_page() -> str:
    return layout("Charts", "/charts", CHARTS_BODY, CHARTS_SCRIPT)


IMPORT_BODY = """
<section class="panel hidden" id="import-login">
  <p><a href="/login">Log in</a> to import scores.</p>
</section>
<section class="panel hidden" id="step-upload">
  <h3>1. Upload CSV</h3>
  <div class="row">
    <select id="import-format">
      <option value="przilla">wodlog export</option>
      <option value="sugarwod">SugarWOD export</option>
    </select>
    <input type="file" id="import-file" accept=".csv,text/csv" />
  </div>
  <div class="error" id="upload-error"></div>
</section>
<section class="panel hidden" id="step-review">
  <h3>2. Review</h3>
  <p class="muted" id="review-summary"></p>
  <table>
    <thead><tr><th></th><th>Row</th><th>Matched WOD</th><th>Date</th><th>Score</th><th>Rx</th><th>Issues</th></tr></thead>
    <tbody id="review-rows"></tbody>
  </table>
  <div class="row" style="margin-top:10px">
    <button class="secondary" id="review-back">Back</button>
    <button id="review-next">Continue</button>
  </div>
</section>
<section class="panel hidden" id="step-confirm">
  <h3>3. Confirm</h3>
  <p id="confirm-summary"></p>
  <div class="error" id="confirm-error"></div>
  <div class="row">
    <button class="secondary" id="confirm-back">Back</button>
    <button id="confirm-submit">Import scores</button>
  </div>
</section>
<section class="panel hidden" id="step-complete">
  <h3>Done</h3>
  <p id="complete-summary"></p>
  <a href="/">Back to WODs</a>
</section>
"""

IMPORT_SCRIPT = """
  const steps = ['upload', 'review', 'confirm', 'complete'];
  const flow = { rows: [], selected: new Set() };

  function show(step) {
    steps.forEach((s) => document.getElementById('step-' + s).classList.toggle('hidden', s !== step));
  }

  function proposedText(score) {
    if (!score) return '-';
    if (score.time_seconds != null) return `${Math.floor(score.time_seconds / 60)}:${String(score.time_seconds % 60).padStart(2, '0')}`;
    if (score.reps != null) return `${score.reps} reps`;
    if (score.load != null) return `${score.load} lbs`;
    if (score.rounds_completed != null) return score.partial_reps ? `${score.rounds_completed}+${score.partial_reps}` : `${score.rounds_completed} rounds`;
    return '-';
  }

  function renderReview() {
    document.getElementById('review-summary').textContent =
      `${flow.rows.length} rows, ${flow.rows.filter((r) => r.validation.is_valid).length} valid, ${flow.selected.size} selected`;
    document.getElementById('review-rows').innerHTML = flow.rows.map((row) => `
      <tr>
        <td><input type="checkbox" data-row="${esc(row.id)}" ${flow.selected.has(row.id) ? 'checked' : ''} ${row.proposed_score && row.validation.is_valid ? '' : 'disabled'} /></td>
        <td>${esc(row.id)}</td>
        <td>${row.matched_wod ? esc(row.matched_wod.wod_name) : '<span class="error">No match</span>'}</td>
        <td>${esc(row.proposed_score ? row.proposed_score.score_date : '')}</td>
        <td>${esc(proposedText(row.proposed_score))}</td>
        <td>${row.proposed_score ? (row.proposed_score.is_rx ? 'Rx' : 'Scaled') : ''}</td>
        <td class="error">${row.validation.errors.map(esc).join('<br>')}</td>
      </tr>`).join('');
    document.getElementById('review-next').disabled = flow.selected.size === 0;
  }

  document.getElementById('import-file').addEventListener('change', async (event) => {
    const file = event.target.files[0];
    if (!file) return;
    document.getElementById('upload-error').textContent = '';
    try {
      const text = await file.text();
      const format = document.getElementById('import-format').value;
      const data = await api('/import/preview?format=' + format, { method: 'POST', body: text, raw: true, headers: { 'Content-Type': 'text/csv' } });
      flow.rows = data.rows;
      flow.selected = new Set(data.selected);
      renderReview();
      show('review');
    } catch (err) {
      document.getElementById('upload-error').textContent = err.message;
    }
  });

  document.getElementById('review-rows').addEventListener('change', (event) => {
    const id = event.target.dataset.row;
    if (!id) return;
    if (event.target.checked) flow.selected.add(id); else flow.selected.delete(id);
    renderReview();
  });
  document.getElementById('review-back').addEventListener('click', () => { document.getElementById('import-file').value = ''; show('upload'); });
  document.getElementById('review-next').addEventListener('click', () => {
    document.getElementById('confirm-summary').textContent = `Import ${flow.selected.size} scores into your log?`;
    document.getElementById('confirm-error').textContent = '';
    show('confirm');
  });
  document.getElementById('confirm-back').addEventListener('click', () => show('review'));
  document.getElementById('confirm-submit').addEventListener('click', async () => {
    const scores = flow.rows.filter((r) => flow.selected.has(r.id) && r.proposed_score).map((r) => r.proposed_score);
    if (!scores.length) { document.getElementById('confirm-error').textContent = 'No valid scores were selected for import.'; return; }
    const button = document.getElementById('confirm-submit');
    button.disabled = true;
    try {
      const result = await api('/scores/import', { method: 'POST', body: JSON.stringify(scores) });
      document.getElementById('complete-summary').textContent = `Imported ${result.count} scores.`;
      show('complete');
    } catch (err) {
      document.getElementById('confirm-error').textContent = 'Import failed: ' + err.message;
    } finally {
      button.disabled = false;
    }
  });

  loadSession().then((user) => {
    if (!user) { document.getElementById('import-login').classList.remove('hidden'); return; }
    show('upload');
  });
"""


def import_page() -> str:
    return layout("Import", "/import", IMPORT_BODY, IMPORT_SCRIPT)


AUTH_BODY = """
<section class="panel" style="max-width:380px;margin:40px auto">
  <h2>__HEADING__</h2>
  <form id="auth-form">
    __NAME_FIELD__
    <p><input name="email" type="email" placeholder="Email" required style="width:100%" /></p>
    <p><input name="password" type="password" placeholder="Password" required minlength="8" style="width:100%" /></p>
    <div class="error" id="auth-error"></div>
    <button type="submit">__HEADING__</button>
  </form>
  <p class="muted">__SWITCH__</p>
</section>
"""

AUTH_SCRIPT = """
  document.getElementById('auth-form').addEventListener('submit', async (event) => {
    event.preventDefault();
    const form = event.target;
    const payload = { email: form.email.value, password: form.password.value };
    if (form.name) payload.name = form.name.value;
    try {
      await api('/auth/__MODE__', { method: 'POST', body: JSON.stringify(payload) });
      window.location = '/';
    } catch (err) {
      document.getElementById('auth-error').textContent = err.message;
    }
  });
  loadSession();
"""


def auth_page(mode: str) -> str:
    signup = mode == "signup"
    heading = "Sign up" if signup else "Log in"
    name_field = '<p><input name="name" placeholder="Name" style="width:100%" /></p>' if signup else ""
    switch = (
        'Already have an account? <a href="/login">Log in</a>'
        if signup
        else 'No account yet? <a href="/signup">Sign up</a>'
    )
    body = (
        AUTH_BODY.replace("__HEADING__", heading)
        .replace("__NAME_FIELD__", name_field)
        .replace("__SWITCH__", switch)
    )
    return layout(heading, "", body, AUTH_SCRIPT.replace("__MODE__", mode))
