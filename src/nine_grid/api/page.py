"""Single-page UI that consumes the grid, auth and debug endpoints."""

PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Nine Picture Grid</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; max-width: 720px; }
      nav button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      .view { display: none; margin-top: 1rem; }
      .view.active { display: block; }
      .grid { display: grid; grid-template-columns: repeat(3, 1fr); gap: 0.75rem; position: relative; }
      .slot { aspect-ratio: 1; border: 2px dashed #ccc; border-radius: 6px; position: relative;
              display: flex; align-items: center; justify-content: center; overflow: hidden; }
      .slot img { width: 100%; height: 100%; object-fit: cover; cursor: zoom-in; }
      .slot .remove { position: absolute; top: 4px; right: 4px; }
      .zoom { position: absolute; inset: 0; background: rgba(0,0,0,0.5); display: none; }
      .zoom img { width: 100%; height: 100%; object-fit: cover; }
      .banner { padding: 0.6rem; border-radius: 6px; margin: 0.5rem 0; }
      .banner.error { background: #fee; color: #a00; }
      .banner.warn { background: #fff7e0; color: #8a5a00; }
      .banner.success { background: #efe; color: #060; }
      textarea { width: 100%; min-height: 100px; margin-top: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 280px; display: block; margin-bottom: 0.5rem; }
      table { width: 100%; border-collapse: collapse; font-size: 0.85rem; }
      td { border-bottom: 1px solid #eee; padding: 0.25rem; vertical-align: top; }
      pre { background: #f6f6f6; padding: 0.5rem; overflow: auto; margin: 0; }
    </style>
  </head>
  <body>
    <h1>Nine Picture Grid</h1>
    <nav>
      <button onclick="show('grid')">Grid</button>
      <button onclick="show('account')">Account</button>
      <button onclick="show('debug')">Debug</button>
    </nav>
    <div id="auth-banner" class="banner warn">
      <strong>Authentication Required:</strong> sign in on the Account tab to upload images.
    </div>

    <section id="grid" class="view active">
      <div id="grid-error" class="banner error" style="display:none">
        <span id="grid-error-text"></span>
        <button onclick="call('POST', '/grid/refresh')">Try Again</button>
      </div>
      <div id="status"></div>
      <div class="grid" id="slots">
        <div class="zoom" id="zoom" onmouseup="unzoom()" onmouseleave="unzoom()"><img /></div>
      </div>
      <textarea id="description" placeholder="Add a description for your image grid..."
                onchange="saveDescription()"></textarea>
      <button onclick="call('POST', '/grid/reset')">Reset</button>
      <button onclick="call('POST', '/grid/save')">Save Grid</button>
    </section>

    <section id="account" class="view">
      <div id="who"></div>
      <input id="email" type="email" placeholder="you@example.com" />
      <input id="password" type="password" placeholder="Password" minlength="6" />
      <button onclick="authenticate('/auth/sign-in')">Sign In</button>
      <button onclick="authenticate('/auth/sign-up')">Sign Up</button>
      <button onclick="signOut()">Sign Out</button>
      <div id="auth-error" class="banner error" style="display:none"></div>
      <div id="auth-success" class="banner success" style="display:none"></div>
    </section>

    <section id="debug" class="view">
      <button onclick="loadStatus()">Check Status</button>
      <button onclick="clearLogs()">Clear Logs</button>
      <pre id="debug-status">Not checked.</pre>
      <table id="logs"></table>
    </section>

    <script>
      function show(id) {
        document.querySelectorAll('.view').forEach(v => v.classList.remove('active'));
        document.getElementById(id).classList.add('active');
        if (id === 'debug') loadLogs();
      }

      function renderGrid(grid) {
        document.getElementById('auth-banner').style.display = grid.authenticated ? 'none' : 'block';
        document.getElementById('status').textContent = grid.status === 'loading' ? 'Loading images...' : '';
        const errorBox = document.getElementById('grid-error');
        errorBox.style.display = grid.error ? 'block' : 'none';
        document.getElementById('grid-error-text').textContent = grid.error || '';
        const container = document.getElementById('slots');
        container.querySelectorAll('.slot').forEach(s => s.remove());
        grid.slots.forEach((url, index) => {
          const slot = document.createElement('div');
          slot.className = 'slot';
          if (url) {
            const img = document.createElement('img');
            img.src = url;
            img.onmousedown = e => { e.preventDefault(); zoom(url); };
            slot.appendChild(img);
            if (grid.authenticated) {
              const remove = document.createElement('button');
              remove.className = 'remove';
              remove.textContent = 'x';
              remove.onclick = () => call('DELETE', '/grid/slots/' + index);
              slot.appendChild(remove);
            }
          } else {
            const input = document.createElement('input');
            input.type = 'file';
            input.accept = 'image/*';
            input.disabled = !grid.authenticated;
            input.onchange = () => upload(index, input.files[0]);
            slot.appendChild(input);
          }
          container.appendChild(slot);
        });
        const description = document.getElementById('description');
        if (document.activeElement !== description) description.value = grid.description;
      }

      async function refresh() {
        const res = await fetch('/grid');
        renderGrid(await res.json());
        const session = await (await fetch('/auth/session')).json();
        document.getElementById('who').textContent = session.authenticated
          ? 'Signed in as ' + session.email : 'Not signed in';
      }

      async function call(method, path, body) {
        const res = await fetch(path, { method, body });
        const data = await res.json();
        if (data.grid) renderGrid(data.grid);
        if (data.snapshot) alert('Your grid has been saved!');
        return data;
      }

      async function upload(index, file) {
        if (!file) return;
        await call('PUT', '/grid/slots/' + index, file);
      }

      async function saveDescription() {
        const description = document.getElementById('description').value;
        await fetch('/grid/description', {
          method: 'PUT',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ description })
        });
      }

      async function authenticate(path) {
        const res = await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({
            email: document.getElementById('email').value,
            password: document.getElementById('password').value
          })
        });
        const data = await res.json();
        const box = document.getElementById('auth-error');
        box.style.display = data.error ? 'block' : 'none';
        box.textContent = data.error || '';
        const done = document.getElementById('auth-success');
        done.style.display = data.success ? 'block' : 'none';
        done.textContent = path === '/auth/sign-up'
          ? 'Signed up successfully! Please check your email for verification.'
          : 'Signed in successfully!';
        await refresh();
      }

      async function signOut() {
        await fetch('/auth/sign-out', { method: 'POST' });
        await refresh();
      }

      function zoom(url) {
        const overlay = document.getElementById('zoom');
        overlay.querySelector('img').src = url;
        overlay.style.display = 'block';
      }

      function unzoom() {
        document.getElementById('zoom').style.display = 'none';
      }

      async function loadLogs() {
        const data = await (await fetch('/debug/logs')).json();
        const table = document.getElementById('logs');
        table.innerHTML = '';
        data.logs.forEach(entry => {
          const row = table.insertRow();
          row.insertCell().textContent = entry.timestamp.substring(11, 19);
          row.insertCell().textContent = entry.level;
          const message = row.insertCell();
          message.textContent = entry.message;
          if (entry.details) {
            const pre = document.createElement('pre');
            pre.textContent = JSON.stringify(entry.details, null, 2);
            message.appendChild(pre);
          }
        });
      }

      async function clearLogs() {
        await fetch('/debug/logs', { method: 'DELETE' });
        await loadLogs();
      }

      async function loadStatus() {
        const data = await (await fetch('/debug/status')).json();
        document.getElementById('debug-status').textContent = JSON.stringify(data, null, 2);
        await loadLogs();
      }

      refresh();
    </script>
  </body>
</html>
"""
