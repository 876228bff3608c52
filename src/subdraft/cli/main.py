from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from subdraft.api.config import load_config
from subdraft.core.drafts.service import DraftPublishStore, srt_filename
from subdraft.core.drafts.store import open_store
from subdraft.core.errors import TranscriptError
from subdraft.core.subtitle.srt_codec import EncodePolicy

app = typer.Typer(help="Transcript segments: SRT import/export and draft/publish workflow")


def _normalize_slot(v: str) -> str:
    v2 = (v or "").strip().lower()
    if v2 in ("published", "content", "live"):
        return "published"
    if v2 in ("draft", "drafts"):
        return "draft"
    raise typer.BadParameter("must be one of: published, draft")


def _drafts(store: Optional[str], data_root: Optional[Path], last_duration: Optional[float]) -> DraftPublishStore:
    cfg = load_config()
    policy = cfg.encode_policy
    if last_duration is not None:
        if last_duration <= 0:
            raise typer.BadParameter("--last-duration must be > 0")
        policy = EncodePolicy(fallback_duration_s=policy.fallback_duration_s, last_duration_s=last_duration)
    backend = open_store(
        store or cfg.store,
        data_root=str(data_root) if data_root else cfg.data_root,
        redis_url=cfg.redis_url,
        redis_prefix=cfg.redis_prefix,
    )
    return DraftPublishStore(backend, policy=policy)


def _fail(e: TranscriptError) -> None:
    typer.echo(f"error[{e.code}]: {e.message}", err=True)
    raise typer.Exit(code=1)


_STORE_OPT = typer.Option(None, "--store", help="Store backend: memory/file/redis (default: SUBDRAFT_STORE)")
_ROOT_OPT = typer.Option(None, "--data-root", help="Data root for the file store (default: SUBDRAFT_DATA_ROOT)")


@app.command("import-srt")
def import_srt(
    input: Path = typer.Argument(..., exists=True, dir_okay=False, help="Input .srt file"),
    transcript_id: str = typer.Option(..., "--id", help="Transcript id"),
    target: str = typer.Option("published", help="Slot to write: published/draft"),
    store: Optional[str] = _STORE_OPT,
    data_root: Optional[Path] = _ROOT_OPT,
):
    slot = _normalize_slot(target)
    drafts = _drafts(store, data_root, None)
    raw = input.read_text(encoding="utf-8", errors="replace")
    try:
        res = drafts.import_srt(transcript_id, raw, target=slot)  # type: ignore[arg-type]
    except TranscriptError as e:
        _fail(e)
        return
    typer.echo(f"imported {res.segments_count} segments into {slot} (skipped {res.skipped_blocks} blocks)")


@app.command("export-srt")
def export_srt(
    transcript_id: str = typer.Argument(..., help="Transcript id"),
    which: str = typer.Option("published", help="Slot to export: published/draft"),
    out: Optional[Path] = typer.Option(None, help="Output file or directory (default: stdout)"),
    title: Optional[str] = typer.Option(None, help="Title used to name the file when --out is a directory"),
    last_duration: Optional[float] = typer.Option(None, help="Seconds shown for the final cue"),
    store: Optional[str] = _STORE_OPT,
    data_root: Optional[Path] = _ROOT_OPT,
):
    slot = _normalize_slot(which)
    drafts = _drafts(store, data_root, last_duration)
    try:
        body = drafts.export_srt(transcript_id, which=slot)  # type: ignore[arg-type]
        rec = drafts.store.require(transcript_id)
    except TranscriptError as e:
        _fail(e)
        return

    if out is None:
        typer.echo(body)
        return

    path = out / srt_filename(title or transcript_id, rec.language) if out.is_dir() else out
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body.rstrip("\n") + "\n", encoding="utf-8")
    typer.echo(str(path))


@app.command()
def publish(
    transcript_id: str = typer.Argument(..., help="Transcript id"),
    store: Optional[str] = _STORE_OPT,
    data_root: Optional[Path] = _ROOT_OPT,
):
    drafts = _drafts(store, data_root, None)
    try:
        rec = drafts.publish(transcript_id)
    except TranscriptError as e:
        _fail(e)
        return
    typer.echo(f"published {len(rec.content)} segments")


@app.command()
def show(
    transcript_id: str = typer.Argument(..., help="Transcript id"),
    store: Optional[str] = _STORE_OPT,
    data_root: Optional[Path] = _ROOT_OPT,
):
    drafts = _drafts(store, data_root, None)
    try:
        st = drafts.state(transcript_id)
    except TranscriptError as e:
        _fail(e)
        return
    payload = st.transcript.model_dump(mode="json")
    payload["has_draft"] = st.has_draft
    payload["has_draft_changes"] = st.has_draft_changes
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default: SUBDRAFT_API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default: SUBDRAFT_API_PORT)"),
):
    import uvicorn  # local import to keep import graph light

    cfg = load_config()
    uvicorn.run("subdraft.api.main:app", host=host or cfg.api_host, port=port or cfg.api_port, reload=False)


if __name__ == "__main__":
    app()
