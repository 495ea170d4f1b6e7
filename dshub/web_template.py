"""
Web UI template for DShub.

Copyright (C) 2025 Andreas Vogler

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.
"""

from html import escape

def get_html(title: str = "DShub", buffer_size: int = 100, poll_interval: float = 30) -> str:
    html = """<!DOCTYPE html>
<html>
<head>
    <title>{{TITLE}} - Service Dashboard</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            background: linear-gradient(135deg, #0f0f1a 0%, #1a1a2e 50%, #16213e 100%);
            background-attachment: fixed;
            color: #eee;
            padding: 20px;
            min-height: 100vh;
        }
        .container {
            max-width: 1400px;
            margin: 0 auto;
            background: rgba(22, 33, 62, 0.6);
            border-radius: 16px;
            border: 1px solid rgba(0, 212, 255, 0.2);
            overflow: hidden;
        }
        .header {
            background: linear-gradient(90deg, rgba(0, 212, 255, 0.15) 0%, rgba(0, 212, 255, 0.05) 100%);
            padding: 20px 25px;
            border-bottom: 1px solid rgba(0, 212, 255, 0.2);
            display: flex;
            justify-content: space-between;
            align-items: center;
        }
        .header h1 { color: #00d4ff; font-size: 1.5em; }
        .header-subtitle { color: #888; font-size: 0.85em; }
        .header-status { display: flex; align-items: center; gap: 8px; color: #4caf50; font-size: 0.85em; }
        .header-status .dot { width: 8px; height: 8px; background: currentColor; border-radius: 50%; }
        .header-status.warning { color: #ff9800; }
        .header-status.error { color: #f44336; }
        .toolbar { display: flex; gap: 10px; padding: 15px 25px; align-items: center; flex-wrap: wrap; }
        .toolbar input {
            flex: 1; min-width: 200px; padding: 8px 12px; border-radius: 6px;
            border: 1px solid rgba(0, 212, 255, 0.3); background: rgba(0, 0, 0, 0.3); color: #eee;
        }
        .legend { display: flex; gap: 12px; font-size: 0.8em; color: #aaa; }
        .legend span::before { content: ""; display: inline-block; width: 8px; height: 8px; border-radius: 50%; margin-right: 4px; }
        .legend .UP::before { background: #4caf50; }
        .legend .DEGRADED::before { background: #ff9800; }
        .legend .DOWN::before { background: #f44336; }
        .services { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 15px; padding: 0 25px 25px; }
        .service { background: rgba(0, 0, 0, 0.25); border: 1px solid rgba(255, 255, 255, 0.08); border-radius: 10px; padding: 15px; }
        .service-head { display: flex; justify-content: space-between; align-items: center; margin-bottom: 8px; }
        .service-name { font-weight: 600; }
        .service-meta { color: #888; font-size: 0.8em; margin-bottom: 12px; }
        .status { padding: 3px 10px; border-radius: 12px; font-size: 0.75em; font-weight: 600; }
        .status.UP { background: rgba(76, 175, 80, 0.2); color: #4caf50; }
        .status.DEGRADED { background: rgba(255, 152, 0, 0.2); color: #ff9800; }
        .status.DOWN { background: rgba(244, 67, 54, 0.2); color: #f44336; }
        .btn { padding: 6px 12px; border-radius: 6px; border: none; cursor: pointer; font-size: 0.8em; color: #fff; }
        .btn:disabled { opacity: 0.5; cursor: default; }
        .btn-start { background: #388e3c; }
        .btn-stop { background: #c62828; }
        .btn-restart { background: #ef6c00; }
        .btn-logs, .btn-refresh { background: #0277bd; }
        .actions { display: flex; gap: 6px; }
        .log-view { display: none; padding: 0 25px 25px; }
        .log-view.active { display: block; }
        .log-content {
            background: #000; color: #4caf50; font-family: monospace; font-size: 0.85em;
            padding: 15px; border-radius: 8px; height: 34em; overflow-y: auto; white-space: pre-wrap;
        }
        .log-entry { margin-bottom: 4px; }
        .log-empty { color: #777; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <div>
                <h1>{{TITLE}}</h1>
                <div class="header-subtitle" id="lastChecked">Waiting for first health check...</div>
            </div>
            <div class="header-status" id="headerStatus"><span class="dot"></span><span>Loading</span></div>
        </div>

        <div id="dashboardView">
            <div class="toolbar">
                <input type="text" id="serviceSearch" placeholder="Search services..." oninput="renderServices()">
                <div class="legend"><span class="UP">UP</span><span class="DEGRADED">DEGRADED</span><span class="DOWN">DOWN</span></div>
                <button class="btn btn-refresh" id="btnRefresh" onclick="refreshServices()">Refresh</button>
            </div>
            <div class="services" id="services"></div>
        </div>

        <div class="log-view" id="logView">
            <div class="toolbar">
                <button class="btn btn-refresh" onclick="showDashboard()">Back</button>
                <strong id="logTitle">Service Logs</strong>
                <input type="text" id="logSearch" placeholder="Search logs..." oninput="renderLogs()">
                <button class="btn btn-logs" onclick="downloadLogs()">Download</button>
            </div>
            <div class="log-content" id="logContent"></div>
        </div>
    </div>

    <script>
        const LOG_BUFFER_SIZE = {{LOG_BUFFER_SIZE}};
        let services = [];
        let logs = [];
        let eventSource = null;
        let currentLogService = null;
        let pollTimer = null;

        function escapeHtml(text) {
            const div = document.createElement('div');
            div.textContent = text;
            return div.innerHTML;
        }

        async function fetchServices() {
            try {
                const res = await fetch('/api/services');
                applySnapshot(await res.json());
            } catch (e) {
                console.error('Failed to fetch service health:', e);
            }
        }

        async function refreshServices() {
            const btn = document.getElementById('btnRefresh');
            btn.disabled = true;
            try {
                const res = await fetch('/api/services/refresh', { method: 'POST' });
                applySnapshot(await res.json());
            } catch (e) {
                console.error('Failed to refresh service health:', e);
            } finally {
                btn.disabled = false;
            }
        }

        function applySnapshot(snapshot) {
            services = snapshot.services || [];
            if (snapshot.completedAt) {
                document.getElementById('lastChecked').textContent =
                    `Last checked: ${new Date(snapshot.completedAt).toLocaleTimeString()}`;
            }
            renderServices();
            updateHeaderStatus();
        }

        function renderServices() {
            const query = document.getElementById('serviceSearch').value.toLowerCase();
            const visible = services.filter(s =>
                s.name.toLowerCase().includes(query) || s.id.toLowerCase().includes(query));

            document.getElementById('services').innerHTML = visible.map(s => `
                <div class="service">
                    <div class="service-head">
                        <span class="service-name">${escapeHtml(s.name)}</span>
                        <span class="status ${s.status}">${s.status}</span>
                    </div>
                    <div class="service-meta">
                        ${escapeHtml(s.id)} | ${escapeHtml(s.baseUrl)}
                        ${s.info && s.info.lastChecked ? ` | ${new Date(s.info.lastChecked).toLocaleTimeString()}` : ''}
                    </div>
                    <div class="actions">
                        <button class="btn btn-logs" onclick="openLogs('${s.id}')">Logs</button>
                        <button class="btn btn-start" onclick="action('start', '${s.id}', this)">Start</button>
                        <button class="btn btn-stop" onclick="action('stop', '${s.id}', this)">Stop</button>
                        <button class="btn btn-restart" onclick="action('restart', '${s.id}', this)">Restart</button>
                    </div>
                </div>
            `).join('');
        }

        function updateHeaderStatus() {
            const header = document.getElementById('headerStatus');
            const down = services.filter(s => s.status === 'DOWN').length;
            const degraded = services.filter(s => s.status === 'DEGRADED').length;

            let statusClass = '';
            let statusText = 'All Systems Operational';
            if (down > 0) {
                statusClass = 'error';
                statusText = `${down} Down`;
            } else if (degraded > 0) {
                statusClass = 'warning';
                statusText = `${degraded} Degraded`;
            }
            header.className = 'header-status ' + statusClass;
            header.innerHTML = `<span class="dot"></span><span>${statusText}</span>`;
        }

        async function action(type, id, btn) {
            btn.disabled = true;
            try {
                const res = await fetch(`/api/service/${encodeURIComponent(id)}/${type}`, { method: 'POST' });
                const data = await res.json();
                if (!res.ok) {
                    alert(`Failed to ${type} ${id}: ${data.error}`);
                }
            } catch (e) {
                alert(`Failed to ${type} ${id}: ${e.message}`);
            } finally {
                btn.disabled = false;
                fetchServices();
            }
        }

        function openLogs(id, push = true) {
            const service = services.find(s => s.id === id);
            currentLogService = id;
            if (push) {
                history.pushState({}, '', `/logs/${encodeURIComponent(id)}`);
            }
            document.getElementById('dashboardView').style.display = 'none';
            document.getElementById('logView').classList.add('active');
            document.getElementById('logTitle').textContent = `Service Logs: ${service ? service.name : id}`;
            connectLogs(id);
        }

        function showDashboard(push = true) {
            closeLogs();
            if (push) {
                history.pushState({}, '', '/');
            }
            document.getElementById('logView').classList.remove('active');
            document.getElementById('dashboardView').style.display = '';
        }

        function connectLogs(id) {
            closeLogs();
            logs = [];
            renderLogs();
            eventSource = new EventSource(`/api/service/${encodeURIComponent(id)}/logs`);
            eventSource.addEventListener('message', (event) => {
                logs = [...logs, event.data].slice(-LOG_BUFFER_SIZE);
                renderLogs();
            });
            eventSource.addEventListener('error', (event) => {
                console.error('Log stream error:', event);
                closeLogs();
            });
        }

        function closeLogs() {
            if (eventSource) {
                eventSource.close();
                eventSource = null;
            }
        }

        function filteredLogs() {
            const query = document.getElementById('logSearch').value.toLowerCase();
            return logs.filter(log => query === '' || log.toLowerCase().includes(query));
        }

        function renderLogs() {
            const content = document.getElementById('logContent');
            const visible = filteredLogs();
            content.innerHTML = visible.length === 0
                ? '<div class="log-empty">No logs available or no matches found.</div>'
                : visible.map(log => `<div class="log-entry">${escapeHtml(log)}</div>`).join('');
            content.scrollTop = content.scrollHeight;
        }

        function downloadLogs() {
            const blob = new Blob([filteredLogs().join('\\n')], { type: 'text/plain' });
            const url = URL.createObjectURL(blob);
            const a = document.createElement('a');
            a.href = url;
            a.download = `${currentLogService}-logs-${new Date().toISOString().split('T')[0]}.log`;
            document.body.appendChild(a);
            a.click();
            document.body.removeChild(a);
            URL.revokeObjectURL(url);
        }

        window.addEventListener('beforeunload', closeLogs);

        // Back and forward move between the dashboard and a log view
        window.addEventListener('popstate', () => {
            const match = window.location.pathname.match(/^\\/logs\\/([^/]+)$/);
            if (match) {
                openLogs(decodeURIComponent(match[1]), false);
            } else {
                showDashboard(false);
            }
        });

        fetchServices().then(() => {
            const match = window.location.pathname.match(/^\\/logs\\/([^/]+)$/);
            if (match) {
                openLogs(decodeURIComponent(match[1]), false);
            }
        });
        pollTimer = setInterval(fetchServices, {{POLL_INTERVAL_MS}});
    </script>
</body>
</html>"""
    return (
        html.replace("{{TITLE}}", escape(title))
        .replace("{{LOG_BUFFER_SIZE}}", str(int(buffer_size)))
        .replace("{{POLL_INTERVAL_MS}}", str(int(poll_interval * 1000)))
    )
