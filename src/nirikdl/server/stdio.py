"""stdio server mode — JSON line-delimited protocol over stdin/stdout."""

from __future__ import annotations

import json
import sys
from typing import Any

import portalocker

from nirikdl.engine.generator import (
    SettingsLoadError,
    load_settings,
    render_settings,
    validate_settings,
    write_config,
)
from nirikdl.io.fileops import default_config_path
from nirikdl.kdl import KdlConversionError


class StdioServer:
    """Simple JSON-RPC-like server over stdin/stdout.

    Requests look like ``{"id": "1", "command": "render", "args": {...}}``.
    ``args`` carries either inline ``settings`` or a ``settings_file`` path,
    plus an optional ``extra_config`` string. ``write`` also takes ``output``,
    ``dry_run`` and ``lock_timeout``.
    """

    def _settings(self, args: dict[str, Any]) -> dict[str, Any]:
        if "settings" in args:
            settings = args["settings"]
            if not isinstance(settings, dict):
                raise SettingsLoadError("'settings' must be an object")
            return settings
        if args.get("settings_file"):
            return load_settings(args["settings_file"])
        raise SettingsLoadError("Provide 'settings' or 'settings_file' in args", code="ERR_MISSING_PARAM")

    def handle_request(self, request: dict[str, Any]) -> dict[str, Any]:
        req_id = request.get("id", "")
        command = request.get("command", "")
        args = request.get("args", {})

        try:
            if command == "render":
                result = render_settings(self._settings(args), args.get("extra_config", ""))
                return {"id": req_id, "ok": True, "result": result.model_dump()}

            elif command == "validate":
                result = validate_settings(self._settings(args))
                return {"id": req_id, "ok": result.valid, "result": result.model_dump()}

            elif command == "write":
                rendered = render_settings(self._settings(args), args.get("extra_config", ""))
                result, changes = write_config(
                    rendered.text,
                    args.get("output") or default_config_path(),
                    dry_run=bool(args.get("dry_run", False)),
                    lock_timeout=float(args.get("lock_timeout", 0)),
                )
                return {
                    "id": req_id,
                    "ok": True,
                    "result": result.model_dump(),
                    "changes": [c.model_dump() for c in changes],
                }

            else:
                return {"id": req_id, "ok": False, "error": f"Unknown command: {command}"}

        except KdlConversionError as e:
            return {"id": req_id, "ok": False, "code": e.code, "error": str(e), "details": e.details()}
        except SettingsLoadError as e:
            return {"id": req_id, "ok": False, "code": e.code, "error": str(e)}
        except FileNotFoundError as e:
            return {"id": req_id, "ok": False, "code": "ERR_SETTINGS_NOT_FOUND", "error": f"File not found: {e.filename}"}
        except portalocker.LockException:
            return {"id": req_id, "ok": False, "code": "ERR_LOCK_HELD", "error": "Config file is locked by another process"}
        except OSError as e:
            return {"id": req_id, "ok": False, "code": "ERR_IO_WRITE", "error": str(e)}
        except Exception as e:
            return {"id": req_id, "ok": False, "error": str(e)}

    def run(self) -> None:
        """Main server loop: read JSON lines from stdin, write responses to stdout."""
        for line in sys.stdin:
            line = line.strip()
            if not line:
                continue
            try:
                request = json.loads(line)
            except json.JSONDecodeError as e:
                response = {"ok": False, "error": f"Invalid JSON: {e}"}
                sys.stdout.write(json.dumps(response) + "\n")
                sys.stdout.flush()
                continue

            if not isinstance(request, dict):
                response = {"ok": False, "error": "Request must be a JSON object"}
            else:
                response = self.handle_request(request)
            sys.stdout.write(json.dumps(response, default=str) + "\n")
            sys.stdout.flush()
