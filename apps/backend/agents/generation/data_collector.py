"""
Project data collection.

Nine reads run in a fixed order. Each one announces itself with a status
event, fetches its rows through the project data service, keeps the raw rows
on the run and derives blackboard entries from them. A read that fails,
whether on the fetch or on a malformed row, is recorded as an unsuccessful
ToolResult and collection moves on.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from agents.domain.models import EntryCategory, PresentationRun, ToolResult
from agents.generation.progress_manager import PresentationPhase
from agents.generation.stream_checkpointer import StreamCheckpointer
from setup_logging_optimized import get_logger

logger = get_logger(__name__)

LIVE_DEPLOYMENT_STATUSES = ("deployed", "live", "running")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def maturity_assessment(age_in_days: int) -> str:
    if age_in_days < 7:
        return "nascent"
    if age_in_days < 30:
        return "developing"
    if age_in_days < 90:
        return "maturing"
    return "established"


def _rows(value: Any) -> List[Dict[str, Any]]:
    return value if isinstance(value, list) else []


class ProjectDataCollector:
    """Runs the nine project reads against one run."""

    def __init__(self, store, checkpointer: StreamCheckpointer):
        self.store = store
        self.checkpointer = checkpointer

    async def collect(self, run: PresentationRun) -> List[ToolResult]:
        reads = [
            self.read_settings,
            self.read_requirements,
            self.read_artifacts,
            self.read_specifications,
            self.read_canvas,
            self.read_repo_structure,
            self.read_databases,
            self.read_connections,
            self.read_deployments,
        ]
        for read in reads:
            # A failed fetch or a malformed row only fails its own read
            try:
                result = await read(run)
            except Exception as e:
                result = self._failed(read.__name__, e)
            run.tool_results.append(result)
            if not result.success:
                logger.warning(f"[COLLECT] {result.tool} failed for {run.project_id}: {result.error}")
        ok = sum(1 for r in run.tool_results if r.success)
        logger.info(f"[COLLECT] {ok}/{len(reads)} reads succeeded, {len(run.blackboard)} entries")
        return run.tool_results

    async def _add(self, entries: List, source: str, category: EntryCategory, content: str,
                   data: Optional[Dict[str, Any]] = None) -> None:
        entries.append(await self.checkpointer.append_entry(source, category.value, content, data))

    @staticmethod
    def _failed(tool: str, error: Exception) -> ToolResult:
        return ToolResult(tool=tool, success=False, error=getattr(error, "message", None) or str(error))

    async def read_settings(self, run: PresentationRun) -> ToolResult:
        tool = "read_settings"
        await self.checkpointer.status(PresentationPhase.READ_SETTINGS)
        project = await self.store.get_project(run.project_id, run.share_token)

        run.collected.settings = project if isinstance(project, dict) else {}
        project = run.collected.settings
        entries = []
        name = run.collected.project_name
        description = run.collected.project_description
        created = _parse_timestamp(project.get("created_at"))
        created_text = f"{created.month}/{created.day}/{created.year}" if created else "an unknown date"

        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f'Project "{name}" established on {created_text}. '
            + (f"Core purpose: {description}" if description
               else "No description provided - this may indicate early-stage planning."),
            {"name": name, "description": description, "created": project.get("created_at")}
        )

        if project.get("organization"):
            await self._add(
                entries, tool, EntryCategory.OBSERVATION,
                f"Organizational context: {project['organization']}. "
                f"This provides institutional framing for stakeholder communications.",
                {"organization": project["organization"]}
            )

        age_in_days = max(0, (datetime.now(timezone.utc) - created).days) if created else 0
        maturity = maturity_assessment(age_in_days)
        if maturity == "nascent":
            outlook = "Expect foundational elements still forming."
        elif maturity == "established":
            outlook = "Should have substantial documentation and implementation."
        else:
            outlook = "Active development likely ongoing."
        await self._add(
            entries, tool, EntryCategory.INSIGHT,
            f"Project age: {age_in_days} days ({maturity} phase). {outlook}",
            {"ageInDays": age_in_days, "maturityAssessment": maturity}
        )

        hook = (f"aims to {description.lower()}" if description
                else "represents a strategic initiative requiring further definition")
        await self._add(entries, tool, EntryCategory.NARRATIVE, f'Opening narrative hook: "{name}" {hook}.')

        return ToolResult(tool=tool, success=True, data=project, blackboard_entries=entries)

    async def read_requirements(self, run: PresentationRun) -> ToolResult:
        tool = "read_requirements"
        await self.checkpointer.status(PresentationPhase.READ_REQUIREMENTS)
        requirements = _rows(await self.store.get_requirements(run.project_id, run.share_token))

        run.collected.requirements = requirements
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Requirements corpus contains {len(requirements)} items. "
            + ("No formal requirements documented - presentation will need to focus on vision and roadmap."
               if not requirements else
               "Comprehensive requirements provide solid foundation for detailed analysis."),
            {"count": len(requirements)}
        )

        if requirements:
            top_level = [r for r in requirements if not r.get("parent_id")]
            nested = [r for r in requirements if r.get("parent_id")]
            ratio = len(nested) / max(len(top_level), 1)
            if ratio > 3:
                verdict = "Well-decomposed requirements indicate mature planning."
            elif ratio > 1:
                verdict = "Moderate decomposition suggests ongoing refinement."
            else:
                verdict = "Flat structure may benefit from further breakdown."
            await self._add(
                entries, tool, EntryCategory.ANALYSIS,
                f"Requirements structure analysis: {len(top_level)} top-level requirements with "
                f"{len(nested)} child items. Decomposition ratio: {ratio:.1f}x. {verdict}",
                {"topLevel": len(top_level), "nested": len(nested), "decompositionRatio": ratio}
            )

            key_requirements = [
                {"code": r.get("code"), "title": r.get("title"), "content": (r.get("content") or "")[:200]}
                for r in top_level[:6]
            ]
            highlights = "; ".join(f"{r['code']}: {r['title']}" for r in key_requirements)
            await self._add(
                entries, tool, EntryCategory.NARRATIVE,
                f"Key requirements to highlight: {highlights}. These form the core value proposition.",
                {"keyRequirements": key_requirements}
            )

            for req in key_requirements[:5]:
                await self._add(
                    entries, tool, EntryCategory.INSIGHT,
                    f"{req['code']}: {req['content'] or req['title']}",
                    {"requirementId": req["code"], "title": req["title"]}
                )

        return ToolResult(tool=tool, success=True, data=requirements, blackboard_entries=entries)

    async def read_artifacts(self, run: PresentationRun) -> ToolResult:
        tool = "read_artifacts"
        await self.checkpointer.status(PresentationPhase.READ_ARTIFACTS)
        artifacts = _rows(await self.store.get_artifacts(run.project_id, run.share_token))

        run.collected.artifacts = artifacts
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Documentation inventory: {len(artifacts)} artifacts. "
            + ("No artifacts uploaded yet." if not artifacts else "Rich documentation provides narrative material."),
            {"count": len(artifacts)}
        )

        if artifacts:
            with_images = sum(1 for a in artifacts if a.get("image_url"))
            with_summaries = sum(1 for a in artifacts if a.get("ai_summary"))
            titled = sum(1 for a in artifacts if a.get("ai_title"))
            await self._add(
                entries, tool, EntryCategory.OBSERVATION,
                f"Artifact composition: {with_images} include images (visual assets for slides), "
                f"{with_summaries} have AI summaries (pre-analyzed content), {titled} have titles.",
                {"images": with_images, "summaries": with_summaries, "titled": titled}
            )

            for artifact in artifacts[:3]:
                title = artifact.get("ai_title") or "Untitled artifact"
                if artifact.get("ai_summary"):
                    await self._add(
                        entries, tool, EntryCategory.INSIGHT,
                        f"{title}: {artifact['ai_summary']}",
                        {"artifactId": artifact.get("id"), "title": artifact.get("ai_title")}
                    )
                elif artifact.get("content"):
                    await self._add(
                        entries, tool, EntryCategory.OBSERVATION,
                        f"{title}: {artifact['content'][:300]}...",
                        {"artifactId": artifact.get("id")}
                    )

        return ToolResult(tool=tool, success=True, data=artifacts, blackboard_entries=entries)

    async def read_specifications(self, run: PresentationRun) -> ToolResult:
        tool = "read_specifications"
        await self.checkpointer.status(PresentationPhase.READ_SPECIFICATIONS)
        specifications = _rows(await self.store.get_specifications(run.project_id, run.share_token))

        run.collected.specifications = specifications
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"{len(specifications)} generated specification(s) available. "
            + ("No formal specs generated yet." if not specifications
               else "Formal specifications available for reference."),
            {"count": len(specifications)}
        )
        return ToolResult(tool=tool, success=True, data=specifications, blackboard_entries=entries)

    async def read_canvas(self, run: PresentationRun) -> ToolResult:
        tool = "read_canvas"
        await self.checkpointer.status(PresentationPhase.READ_CANVAS)
        nodes = _rows(await self.store.get_canvas_nodes(run.project_id, run.share_token))
        try:
            edges = _rows(await self.store.get_canvas_edges(run.project_id, run.share_token))
        except Exception as e:
            # Edges only refine the picture; components alone are still useful
            logger.warning(f"[COLLECT] canvas edges unavailable: {getattr(e, 'message', e)}")
            edges = []

        run.collected.canvas = {"nodes": nodes, "edges": edges}
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Architecture canvas contains {len(nodes)} components and {len(edges)} connections. "
            + ("No architecture defined yet." if not nodes else "Visual architecture available for presentation."),
            {"nodes": len(nodes), "edges": len(edges)}
        )

        if nodes:
            node_types = dict(Counter(str(n.get("type")) for n in nodes))
            composition = ", ".join(f"{count} {node_type}" for node_type, count in node_types.items())
            await self._add(
                entries, tool, EntryCategory.ANALYSIS,
                f"Architecture composition: {composition}. This reveals the system's structural paradigm.",
                {"nodeTypes": node_types}
            )

            connectivity = len(edges) / max(len(nodes), 1)
            if connectivity > 2:
                verdict = "Highly interconnected system."
            elif connectivity > 1:
                verdict = "Moderate coupling indicates balanced architecture."
            else:
                verdict = "Loosely coupled components suggest microservices or modular design."
            await self._add(
                entries, tool, EntryCategory.INSIGHT,
                f"Connectivity analysis: {connectivity:.2f} connections per component. {verdict}",
                {"connectivity": connectivity}
            )

            components = []
            for node in nodes[:10]:
                node_data = node.get("data") or {}
                components.append({
                    "type": node.get("type"),
                    "label": node_data.get("label") or node_data.get("title") or "Unnamed",
                    "description": node_data.get("description") or "",
                })
            listing = ", ".join(f"{c['label']} ({c['type']})" for c in components)
            await self._add(
                entries, tool, EntryCategory.NARRATIVE,
                f"Key architectural components: {listing}. These form the system's backbone.",
                {"components": components}
            )

        return ToolResult(tool=tool, success=True, data=run.collected.canvas, blackboard_entries=entries)

    async def read_repo_structure(self, run: PresentationRun) -> ToolResult:
        tool = "read_repo_structure"
        await self.checkpointer.status(PresentationPhase.READ_REPO)
        repos = _rows(await self.store.get_repos(run.project_id, run.share_token))

        files: List[Dict[str, Any]] = []
        for repo in repos:
            try:
                files.extend(_rows(await self.store.get_repo_files(repo.get("id"), run.share_token)))
            except Exception as e:
                logger.warning(f"[COLLECT] files of repo {repo.get('id')} unavailable: {getattr(e, 'message', e)}")

        run.collected.repo_structure = {"repos": repos, "files": files}
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Codebase inventory: {len(repos)} repositories containing {len(files)} files. "
            + ("No code files yet - project is in planning phase." if not files
               else "Active development with trackable progress."),
            {"repoCount": len(repos), "fileCount": len(files)}
        )

        if files:
            extensions: Dict[str, int] = {}
            directories = set()
            for f in files:
                path = f.get("path") or ""
                ext = path.split(".")[-1] if path else "unknown"
                extensions[ext] = extensions.get(ext, 0) + 1
                directory = "/".join(path.split("/")[:-1])
                if directory:
                    directories.add(directory)
            formats = ", ".join(f"{ext} ({count} files)" for ext, count in list(extensions.items())[:5])
            await self._add(
                entries, tool, EntryCategory.ANALYSIS,
                f"Code organization: {len(directories)} directories. Primary languages/formats: {formats}. "
                f"This indicates technology choices and project scope.",
                {"extensions": extensions, "directories": len(directories)}
            )

        return ToolResult(tool=tool, success=True, data=run.collected.repo_structure, blackboard_entries=entries)

    async def read_databases(self, run: PresentationRun) -> ToolResult:
        tool = "read_databases"
        await self.checkpointer.status(PresentationPhase.READ_DATABASES)
        databases = _rows(await self.store.get_databases(run.project_id, run.share_token))

        run.collected.databases = databases
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Database infrastructure: {len(databases)} database(s) configured. "
            + ("No databases configured yet." if not databases else "Data layer established."),
            {"count": len(databases)}
        )
        return ToolResult(tool=tool, success=True, data=databases, blackboard_entries=entries)

    async def read_connections(self, run: PresentationRun) -> ToolResult:
        tool = "read_connections"
        await self.checkpointer.status(PresentationPhase.READ_CONNECTIONS)
        connections = _rows(await self.store.get_database_connections(run.project_id, run.share_token))

        run.collected.connections = connections
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"External integrations: {len(connections)} connection(s). "
            + ("No external data sources connected." if not connections else "Integration points established."),
            {"count": len(connections)}
        )
        return ToolResult(tool=tool, success=True, data=connections, blackboard_entries=entries)

    async def read_deployments(self, run: PresentationRun) -> ToolResult:
        tool = "read_deployments"
        await self.checkpointer.status(PresentationPhase.READ_DEPLOYMENTS)
        deployments = _rows(await self.store.get_deployments(run.project_id, run.share_token))

        run.collected.deployments = deployments
        entries = []
        await self._add(
            entries, tool, EntryCategory.OBSERVATION,
            f"Deployment configurations: {len(deployments)}. "
            + ("No deployments configured - project not yet production-ready." if not deployments
               else "Deployment pipeline established."),
            {"count": len(deployments)}
        )

        if deployments:
            live = [d for d in deployments if d.get("status") in LIVE_DEPLOYMENT_STATUSES]
            await self._add(
                entries, tool, EntryCategory.INSIGHT,
                f"{len(live)}/{len(deployments)} deployments are live. "
                + ("Production presence established." if live else "Deployments configured but not yet live."),
                {"liveCount": len(live)}
            )

        return ToolResult(tool=tool, success=True, data=deployments, blackboard_entries=entries)
