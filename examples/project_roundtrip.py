"""Example pipeline: create projects on disk, edit one, and reopen it."""

import tempfile

from paperboard import BoardConfig, ProjectManager, Workspace, storage_from_url


def main() -> None:
    with tempfile.TemporaryDirectory() as root:
        config = BoardConfig(storage_url=f"file://{root}")
        workspace = Workspace(ProjectManager(storage_from_url(config.storage_url), config=config))

        project = workspace.open()
        print(f"Opened {project.id} ({project.name}) with {len(workspace.store.shapes())} shape(s)")

        workspace.store.create_shapes([{"type": "note", "x": 600, "y": 700, "props": {"text": "Check daylight"}}])
        workspace.create_project("Kitchen")
        print(f"Created {workspace.current.id} ({workspace.current.name})")

        workspace.switch_project(project.id)
        notes = [shape["props"]["text"] for shape in workspace.store.shapes() if shape["type"] == "note"]
        print(f"Back on {project.id}: notes {notes}")

        for entry in workspace.manager.projects:
            print(f"  {entry.id}  {entry.name}  updated {entry.updated_at}")


if __name__ == "__main__":
    main()
