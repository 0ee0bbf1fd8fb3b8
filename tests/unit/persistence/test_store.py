"""Unit tests for DocumentStore against the in-memory database."""

import pytest

from docnex.core.constants import Table
from docnex.core.exceptions import DatabaseClientError, RecordNotFoundError
from docnex.core.config import Settings
from docnex.persistence.snapshots import SnapshotService
from docnex.persistence.store import DocumentStore
from docnex.schemas.blocks import ImportItem, ImportMode, ImportTarget
from docnex.schemas.entities import CognitiveMemory, LinkType, RegulatoryStatus
from tests.conftest import DOCUMENT_ID, OTHER_DOCUMENT_ID, OTHER_PROJECT_ID, PROJECT_ID
from tests.fakes.fake_clients import FakeDatabaseClient


def seed_blocks(db: FakeDatabaseClient, *blocks: tuple[str, float, str | None], document_id: str = DOCUMENT_ID) -> None:
    """Add (id, order_index, parent_id) blocks to a document."""
    for block_id, order, parent in blocks:
        db.rows(Table.DOCUMENT_BLOCKS).append({
            "id": block_id,
            "document_id": document_id,
            "title": block_id.upper(),
            "content": f"contenido {block_id}",
            "order_index": order,
            "parent_block_id": parent,
            "is_deleted": False,
            "block_type": "text",
        })


class TestDocuments:
    """Tests for project and document operations."""

    @pytest.mark.asyncio
    async def test_active_project(self, store: DocumentStore) -> None:
        project = await store.get_active_project()

        assert project is not None
        assert project.id == PROJECT_ID
        assert project.name == "Ley de Vivienda"

    @pytest.mark.asyncio
    async def test_no_project(self) -> None:
        assert await DocumentStore(FakeDatabaseClient()).get_active_project() is None

    @pytest.mark.asyncio
    async def test_get_document(self, store: DocumentStore) -> None:
        document = await store.get_document(DOCUMENT_ID)

        assert document.title == "Borrador"
        assert document.project_id == PROJECT_ID

    @pytest.mark.asyncio
    async def test_missing_document(self, store: DocumentStore) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await store.get_document("missing")

        assert exc_info.value.table == "documents"

    @pytest.mark.asyncio
    async def test_list_documents_by_project(self, store: DocumentStore) -> None:
        documents = await store.list_documents(PROJECT_ID)

        assert [d.id for d in documents] == [DOCUMENT_ID]

    @pytest.mark.asyncio
    async def test_archive_document(self, store: DocumentStore) -> None:
        document = await store.archive_document(DOCUMENT_ID)

        assert document.status == "archived"

    @pytest.mark.asyncio
    async def test_update_missing_document(self, store: DocumentStore) -> None:
        with pytest.raises(RecordNotFoundError):
            await store.update_document("missing", {"title": "x"})

    @pytest.mark.asyncio
    async def test_duplicate_document_copies_blocks(
        self,
        store: DocumentStore,
        fake_db: FakeDatabaseClient,
    ) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, "a"))

        copy = await store.duplicate_document(DOCUMENT_ID)

        assert copy.title == "Borrador (Copy)"
        blocks = await store.list_blocks(copy.id)
        assert [b.title for b in blocks] == ["A", "B"]
        assert all(b.parent_block_id is None for b in blocks)

    @pytest.mark.asyncio
    async def test_database_errors_propagate(self) -> None:
        db = FakeDatabaseClient(error_on={"select": DatabaseClientError("down")})

        with pytest.raises(DatabaseClientError):
            await DocumentStore(db).list_documents(PROJECT_ID)


class TestBlocks:
    """Tests for block operations."""

    @pytest.mark.asyncio
    async def test_create_block_defaults(self, store: DocumentStore) -> None:
        block = await store.create_block(DOCUMENT_ID, "texto", 0, title="")

        assert block.title == "New Block"
        assert block.is_deleted is False
        assert block.document_id == DOCUMENT_ID

    @pytest.mark.asyncio
    async def test_create_sub_block(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None))

        child = await store.create_sub_block(DOCUMENT_ID, "a", "hijo", 0)

        assert child.parent_block_id == "a"
        assert child.title == "New Sub-block"

    @pytest.mark.asyncio
    async def test_soft_delete_and_restore(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, None))

        await store.soft_delete_block("a")

        assert [b.id for b in await store.list_active_blocks(DOCUMENT_ID)] == ["b"]
        assert [b.id for b in await store.list_deleted_blocks(DOCUMENT_ID)] == ["a"]

        await store.restore_block("a")

        assert [b.id for b in await store.list_active_blocks(DOCUMENT_ID)] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_update_block_sets_edit_time(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None))

        block = await store.update_block("a", "nuevo", tags=["urbanismo"])

        assert block.content == "nuevo"
        assert block.tags == ["urbanismo"]
        assert block.last_edited_at is not None

    @pytest.mark.asyncio
    async def test_reorder_blocks(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, None), ("c", 2, None))

        await store.reorder_blocks(DOCUMENT_ID, ["c", "a", "b"])

        assert [b.id for b in await store.list_blocks(DOCUMENT_ID)] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_normalize_order_writes_only_changes(
        self,
        store: DocumentStore,
        fake_db: FakeDatabaseClient,
    ) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 5, None), ("a1", 0, "a"))

        order = await store.normalize_order(DOCUMENT_ID)

        assert order == {"a": 0, "b": 1, "a1": 0}
        updates = fake_db.calls("update", Table.DOCUMENT_BLOCKS)
        assert len(updates) == 1
        assert updates[0]["values"]["order_index"] == 1

    @pytest.mark.asyncio
    async def test_block_tree(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("t", 0, None), ("c", 0, "t"))

        tree = await store.get_block_tree(DOCUMENT_ID)

        assert [b.id for b in tree.preorder()] == ["t", "c"]

    @pytest.mark.asyncio
    async def test_duplicate_block_goes_last(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 4, None))

        copy = await store.duplicate_block("a")

        assert copy.title == "A (copy)"
        assert copy.order_index == 5

    @pytest.mark.asyncio
    async def test_merge_blocks(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, None))

        merged = await store.merge_blocks("a", "b")

        assert merged is not None
        assert merged.content == "contenido a\n\ncontenido b"
        assert merged.title == "A + B"
        assert [b.id for b in await store.list_deleted_blocks(DOCUMENT_ID)] == ["b"]

    @pytest.mark.asyncio
    async def test_merge_with_missing_or_same_block(
        self,
        store: DocumentStore,
        fake_db: FakeDatabaseClient,
    ) -> None:
        seed_blocks(fake_db, ("a", 0, None))

        assert await store.merge_blocks("a", "missing") is None
        assert await store.merge_blocks("a", "a") is None

    @pytest.mark.asyncio
    async def test_split_block(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, None))

        new_block = await store.split_block("a", len("contenido"))

        blocks = await store.list_blocks(DOCUMENT_ID)
        assert [b.id for b in blocks] == ["a", new_block.id, "b"]
        assert [b.order_index for b in blocks] == [0, 1, 2]
        assert blocks[0].content == "contenido"
        assert blocks[1].content == "a"
        assert blocks[1].title == "A (continued)"


class TestVersions:
    """Tests for block versions and history."""

    @pytest.mark.asyncio
    async def test_versions_increment(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None))
        block = await store.get_block("a")

        first = await store.create_block_version(block)
        second = await store.create_block_version(block)

        assert (first.version_number, second.version_number) == (1, 2)
        assert [v.version_number for v in await store.list_block_versions("a")] == [2, 1]

    @pytest.mark.asyncio
    async def test_restore_version(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None))
        version = await store.create_block_version(await store.get_block("a"))
        await store.update_block("a", "cambiado")

        restored = await store.restore_block_version(version.id)

        assert restored == {"title": "A", "content": "contenido a"}
        assert (await store.get_block("a")).content == "contenido a"


class TestResourcesAndComments:
    """Tests for resources, extracts, links and comments."""

    @pytest.mark.asyncio
    async def test_resource_content_placeholder(self, store: DocumentStore) -> None:
        resource = await store.create_resource(PROJECT_ID, "Plano", "pdf")

        content = await store.fetch_resource_content(resource.id)

        assert content == {"content": "Contenido de ejemplo para: Plano", "type": "pdf"}

    @pytest.mark.asyncio
    async def test_resource_content_from_meta(self, store: DocumentStore) -> None:
        resource = await store.create_resource(PROJECT_ID, "Nota", "text", meta={"content": "cuerpo"})

        assert (await store.fetch_resource_content(resource.id))["content"] == "cuerpo"

    @pytest.mark.asyncio
    async def test_list_resources_filtered_by_document(self, store: DocumentStore) -> None:
        await store.create_resource(PROJECT_ID, "General", "pdf")
        await store.create_resource(PROJECT_ID, "Del borrador", "pdf", document_id=DOCUMENT_ID)

        assert len(await store.list_resources(PROJECT_ID)) == 2
        assert [r.title for r in await store.list_resources(PROJECT_ID, DOCUMENT_ID)] == ["Del borrador"]

    @pytest.mark.asyncio
    async def test_links_and_extracts(self, store: DocumentStore) -> None:
        resource = await store.create_resource(PROJECT_ID, "Plano", "pdf")
        extract = await store.create_resource_extract(resource.id, "párrafo citado")
        link = await store.create_link("a", resource.id, extract.id)

        assert [lk.id for lk in await store.list_block_links("a")] == [link.id]

        await store.remove_link(link.id)

        assert await store.list_block_links("a") == []

    @pytest.mark.asyncio
    async def test_comments_and_replies(self, store: DocumentStore) -> None:
        comment = await store.create_block_comment("a", "texto", "Revisar redacción")
        await store.add_comment_reply(comment.id, "Hecho")
        await store.resolve_block_comment(comment.id)

        comments = await store.list_block_comments("a")
        replies = await store.list_comment_replies(comment.id)

        assert comments[0].resolved is True
        assert [r.content for r in replies] == ["Hecho"]


class TestSemanticLinks:
    """Tests for semantic link queries."""

    @pytest.mark.asyncio
    async def test_links_by_direction(self, store: DocumentStore) -> None:
        await store.create_semantic_links([
            {"source_block_id": "a", "target_block_id": "b", "link_type": "semantic_similarity"},
            {"source_block_id": "c", "target_document_id": OTHER_DOCUMENT_ID},
        ])

        outgoing = await store.list_semantic_links_by_block("a")

        assert outgoing[0].link_type is LinkType.SEMANTIC_SIMILARITY
        assert [lk.source_block_id for lk in await store.get_backlinks_by_block("b")] == ["a"]
        assert len(await store.list_semantic_links_by_document(OTHER_DOCUMENT_ID)) == 1

    @pytest.mark.asyncio
    async def test_no_links_skips_insert(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        assert await store.create_semantic_links([]) == []
        assert fake_db.calls("insert") == []


class TestRegulatoryLibrary:
    """Tests for the regulatory resource lifecycle."""

    @pytest.mark.asyncio
    async def test_lifecycle(self, store: DocumentStore) -> None:
        old = await store.register_regulatory_resource({"title": "Decreto 1/2010"})
        new = await store.register_regulatory_resource({"title": "Decreto 5/2024"})

        await store.mark_regulation_obsolete(old.id, replaced_by_id=new.id)

        active = await store.list_regulatory_resources(RegulatoryStatus.ACTIVE)
        obsolete = await store.list_regulatory_resources(RegulatoryStatus.OBSOLETE)
        assert [r.id for r in active] == [new.id]
        assert obsolete[0].replaced_by_id == new.id

    @pytest.mark.asyncio
    async def test_veto(self, store: DocumentStore) -> None:
        resource = await store.register_regulatory_resource({"title": "Orden"})

        vetoed = await store.veto_regulation(resource.id, "No aplica")

        assert vetoed.status is RegulatoryStatus.VETOED
        assert vetoed.veto_reason == "No aplica"


class TestMemoryAndContext:
    """Tests for cognitive memory and research context."""

    @pytest.mark.asyncio
    async def test_memory_upsert(self, store: DocumentStore) -> None:
        assert await store.get_memory("division_preferences") is None

        await store.upsert_memory(CognitiveMemory(memory_key="division_preferences", memory_value="- a"))
        await store.upsert_memory(
            CognitiveMemory(memory_key="division_preferences", memory_value="- a\n- b", confidence_score=0.1)
        )

        memory = await store.get_memory("division_preferences")
        assert memory is not None
        assert memory.memory_value == "- a\n- b"
        assert memory.confidence_score == 0.1

    @pytest.mark.asyncio
    async def test_blocks_outside_project(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("mine", 0, None))
        seed_blocks(fake_db, ("theirs", 0, None), document_id=OTHER_DOCUMENT_ID)

        context = await store.list_blocks_outside_project(PROJECT_ID)

        assert len(context) == 1
        assert context[0].title == "THEIRS"
        assert context[0].document_title == "Texto refundido"
        assert context[0].project_title == "Reglamento Urbanístico"

    @pytest.mark.asyncio
    async def test_no_other_projects(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        fake_db.tables[Table.DOCUMENTS.value] = [
            d for d in fake_db.rows(Table.DOCUMENTS) if d["project_id"] == OTHER_PROJECT_ID
        ]

        assert await store.list_blocks_outside_project(OTHER_PROJECT_ID) == []

    @pytest.mark.asyncio
    async def test_article_blocks(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        fake_db.rows(Table.DOCUMENT_BLOCKS).extend([
            {"id": "x", "document_id": DOCUMENT_ID, "title": "ARTICULO 3. Licencias"},
            {"id": "y", "document_id": DOCUMENT_ID, "title": "Preámbulo"},
        ])

        assert [b.id for b in await store.list_article_blocks()] == ["x"]

    @pytest.mark.asyncio
    async def test_log_interaction(self, store: DocumentStore, fake_db: FakeDatabaseClient) -> None:
        await store.log_interaction({"event_type": "accept"})

        assert fake_db.rows(Table.INTERACTION_LOGS)[0]["event_type"] == "accept"


def importing_store(db: FakeDatabaseClient) -> DocumentStore:
    return DocumentStore(db, snapshots=SnapshotService(db, settings=Settings(_env_file=None)))


def new_blocks(db: FakeDatabaseClient, document_id: str = DOCUMENT_ID) -> list[dict]:
    rows = [r for r in db.rows(Table.DOCUMENT_BLOCKS) if r["document_id"] == document_id]
    return sorted(rows, key=lambda r: r["order_index"])


class TestImportItems:
    """Tests for persisting import wizard items."""

    @pytest.mark.asyncio
    async def test_merge_appends_after_existing_blocks(self, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, None))
        items = [
            ImportItem(title="Título I", content="intro", children=[ImportItem(title="Art. 1", content="uno")]),
            ImportItem(title="Título II", content="fin"),
        ]

        result = await importing_store(fake_db).import_items(DOCUMENT_ID, items)

        assert result.count == 3
        assert result.document_ids == [DOCUMENT_ID]
        blocks = new_blocks(fake_db)
        assert [b["title"] for b in blocks] == ["A", "B", "Título I", "Art. 1", "Título II"]
        assert [b["order_index"] for b in blocks[2:]] == [2, 3, 4]
        assert blocks[3]["parent_block_id"] == blocks[2]["id"]
        assert blocks[4]["parent_block_id"] is None
        assert all(b["block_type"] == "section" for b in blocks[2:])

    @pytest.mark.asyncio
    async def test_merge_is_logged_without_snapshot(self, fake_db: FakeDatabaseClient) -> None:
        await importing_store(fake_db).import_items(DOCUMENT_ID, [ImportItem(title="A", content="a")])

        (history,) = fake_db.rows(Table.DOCUMENT_HISTORY)
        assert history["action_type"] == "import_merge"
        assert history["snapshot"] == []
        assert history["metadata"]["items_to_import"] == 1

    @pytest.mark.asyncio
    async def test_replace_snapshots_then_removes_existing(self, fake_db: FakeDatabaseClient) -> None:
        seed_blocks(fake_db, ("a", 0, None), ("b", 1, "a"))

        result = await importing_store(fake_db).import_items(
            DOCUMENT_ID,
            [ImportItem(title="Nuevo", content="texto nuevo")],
            mode=ImportMode.REPLACE,
        )

        assert result.count == 1
        blocks = new_blocks(fake_db)
        assert [(b["title"], b["order_index"]) for b in blocks] == [("Nuevo", 0)]
        (history,) = fake_db.rows(Table.DOCUMENT_HISTORY)
        assert history["action_type"] == "import_replace"
        assert history["description"] == "Sustitución de contenido: 2 bloques reemplazados."
        assert [b["id"] for b in history["snapshot"]] == ["a", "b"]
        assert history["snapshot"][1]["parent_block_id"] == "a"

    @pytest.mark.asyncio
    async def test_replace_on_empty_document_skips_snapshot(self, fake_db: FakeDatabaseClient) -> None:
        await importing_store(fake_db).import_items(
            DOCUMENT_ID,
            [ImportItem(title="A", content="a")],
            mode=ImportMode.REPLACE,
        )

        assert fake_db.rows(Table.DOCUMENT_HISTORY) == []
        assert len(new_blocks(fake_db)) == 1

    @pytest.mark.asyncio
    async def test_other_targets_create_support_documents(self, fake_db: FakeDatabaseClient) -> None:
        items = [
            ImportItem(title="Principal", content="p"),
            ImportItem(
                title="Sentencia",
                content="s",
                target=ImportTarget.LINKED_REF,
                children=[ImportItem(title="Fundamento", content="f", target=ImportTarget.NOTE)],
            ),
            ImportItem(title="Nota", content="n", target=ImportTarget.NOTE),
        ]

        result = await importing_store(fake_db).import_items(DOCUMENT_ID, items)

        assert result.count == 4
        assert result.document_ids[0] == DOCUMENT_ID
        assert len(result.document_ids) == 3
        docs = {d["id"]: d for d in fake_db.rows(Table.DOCUMENTS)}
        linked, note = (docs[doc_id] for doc_id in result.document_ids[1:])
        assert linked["title"].startswith("Importado: Referencia Vinculada (")
        assert note["title"].startswith("Importado: Referencia (")
        assert {linked["category"], note["category"]} == {"linked_ref"}
        assert linked["status"] == note["status"] == "draft"
        assert linked["project_id"] == PROJECT_ID
        assert [b["title"] for b in new_blocks(fake_db, linked["id"])] == ["Sentencia", "Fundamento"]
        assert [b["title"] for b in new_blocks(fake_db, note["id"])] == ["Nota"]
        assert [b["title"] for b in new_blocks(fake_db)] == ["Principal"]

    @pytest.mark.asyncio
    async def test_entities_decoded_and_keywords_tagged(self, fake_db: FakeDatabaseClient) -> None:
        items = [
            ImportItem(title="Art&iacute;culo 1", content="La ley de la Comunidad de Madrid &amp; otras"),
            ImportItem(title="Art&iacute;culo 2", content="Texto de Madrid", tags=["vivienda"]),
        ]

        await importing_store(fake_db).import_items(DOCUMENT_ID, items)

        first, second = new_blocks(fake_db)
        assert first["title"] == "Artículo 1"
        assert first["content"] == "La ley de la Comunidad de Madrid & otras"
        assert first["tags"] == ["Comunidad", "Madrid"]
        assert second["tags"] == ["vivienda"]

    @pytest.mark.asyncio
    async def test_unknown_document(self, fake_db: FakeDatabaseClient) -> None:
        with pytest.raises(RecordNotFoundError):
            await importing_store(fake_db).import_items("missing", [ImportItem(title="A", content="a")])

        assert fake_db.rows(Table.DOCUMENT_BLOCKS) == []
