"""BagIt archive export for data packages.

A bag is a directory with a fixed set of tag files and a ``data/`` payload
directory, compressed into one zip file::

    bagit.txt             format declaration
    bag-info.txt          Payload-Oxum, Bagging-Date, Bag-Size
    pid-mapping.txt       "<identifier> <path>" per payload file
    manifest-md5.txt      "<md5> <path>" per payload file
    tagmanifest-md5.txt   "<md5> <tag file>" for bag-info, bagit and pid-mapping
    data/                 member files plus one "<id>.rdf" resource map

Each build stages its files in its own ``mkdtemp`` directory, so concurrent
builds never share a path. The zip is written under a temporary name and
renamed into place, so a failed build never leaves an archive behind.
"""

import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol

from bagbundle.models import (
    BAG_INFO_TXT,
    BAGIT_TXT,
    MANIFEST_TXT,
    PAYLOAD_DIR,
    PID_MAPPING_TXT,
    TAG_FILES,
    TAG_MANIFEST_TXT,
    BagDeclaration,
    BagInfo,
    ManifestEntry,
    PidMapping,
)

from datapack.clock import PackageClock
from datapack.config import DataPackConfig, load_config
from datapack.digest import digest
from datapack.errors import BagBuildError, MissingPayloadError
from datapack.identifiers import IdFactory, new_id
from datapack.logging import setup_logging
from datapack.resource_map import serialize

if TYPE_CHECKING:
    from datapack.package import DataPackage

logger = setup_logging()

STAGING_PREFIX = "datapack-bag-"
RESOURCE_MAP_SUFFIX = ".rdf"


class BagExporter(Protocol):
    def build(self, package: "DataPackage", archive_path: Optional[Path] = None) -> Path: ...  # type: ignore


class BagArchiveBuilder:
    """Builds BagIt zip archives from data packages.

    Args:
        config: Settings for staging location, tag file values and prefixes.
            Loaded with `load_config` when omitted.
        clock: Source of the Bagging-Date. Defaults to the system clock at
            build time.
        id_factory: Generates the resource map identifier.
    """

    def __init__(
        self,
        config: Optional[DataPackConfig] = None,
        clock: Optional[PackageClock] = None,
        id_factory: IdFactory = new_id,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.clock = clock
        self._new_id = id_factory

    def build(self, package: "DataPackage", archive_path: Optional[Path] = None) -> Path:
        """Stages ``package`` as a bag and compresses it into a zip archive.

        Members are written in the package's identifier order, followed by
        the RDF/XML resource map. Manifest and pid-mapping lines follow the
        same order.

        Args:
            package: The package to export.
            archive_path: Where to write the zip. Defaults to a ``.zip`` file
                next to the staging directory.

        Returns:
            Path of the finished archive.

        Raises:
            MissingPayloadError: If a member's external file does not exist.
            BagBuildError: If any staging, copy, write, digest or zip step fails.
            SerializationError: If the resource map cannot be rendered.
        """
        staging_root = self._create_staging()
        bag_dir = staging_root / "bag"
        logger.debug(f"Staging bag for package {package.package_id!r} in {bag_dir}")

        try:
            written: List[str] = []
            self._write_tag_file(bag_dir, BAGIT_TXT, self._declaration().lines(), written)

            payload = self._stage_members(package, bag_dir, written)
            payload.append(self._stage_resource_map(package, bag_dir, written))

            manifest = [ManifestEntry(digest=digest(bag_dir / path), path=path) for _, path in payload]
            pid_mappings = [PidMapping(identifier=identifier, path=path) for identifier, path in payload]
            payload_bytes = sum((bag_dir / path).stat().st_size for _, path in payload)
            clock = self.clock or PackageClock.system()
            info = BagInfo.for_payload(payload_bytes, len(payload), clock.today())
            logger.debug(info)

            self._write_tag_file(bag_dir, BAG_INFO_TXT, info.lines(), written)
            self._write_tag_file(bag_dir, PID_MAPPING_TXT, [m.line() for m in pid_mappings], written)
            self._write_tag_file(bag_dir, MANIFEST_TXT, [e.line() for e in manifest], written)

            tag_manifest = [ManifestEntry(digest=digest(bag_dir / name), path=name) for name in TAG_FILES]
            self._write_tag_file(bag_dir, TAG_MANIFEST_TXT, [e.line() for e in tag_manifest], written)

            if archive_path is None:
                archive_path = staging_root.parent / f"{staging_root.name}.zip"
            archive_path = self._compress(bag_dir, written, Path(archive_path))
        except BagBuildError:
            logger.error(f"Bag build failed; staging directory left at {staging_root}")
            raise
        except OSError as e:
            logger.error(f"Bag build failed; staging directory left at {staging_root}")
            raise BagBuildError(f"Error serializing package to BagIt format: {e}") from e

        if not self.config.keep_staging:
            shutil.rmtree(staging_root, ignore_errors=True)

        logger.info(f"Bag for package {package.package_id!r} written to {archive_path}")
        logger.info(f"  Payload: {info.payload_oxum} ({info.bag_size})")
        return archive_path

    def _declaration(self) -> BagDeclaration:
        return BagDeclaration(version=self.config.bagit_version, encoding=self.config.tag_file_encoding)

    def _create_staging(self) -> Path:
        try:
            staging_root = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.config.staging_dir))
            (staging_root / "bag" / PAYLOAD_DIR).mkdir(parents=True)
        except OSError as e:
            raise BagBuildError(f"Unable to create bag staging directory: {e}") from e
        return staging_root

    def _write_tag_file(self, bag_dir: Path, name: str, lines: List[str], written: List[str]) -> None:
        (bag_dir / name).write_text("".join(f"{line}\n" for line in lines), encoding=self.config.tag_file_encoding)
        written.append(name)

    def _payload_destination(self, bag_dir: Path, relative_path: str, written: List[str]) -> Path:
        """Resolves a payload path, refusing escapes from data/ and duplicate writes."""
        data_dir = (bag_dir / PAYLOAD_DIR).resolve()
        destination = (bag_dir / relative_path).resolve()
        if data_dir not in destination.parents:
            raise BagBuildError(f"Payload path {relative_path!r} escapes the {PAYLOAD_DIR}/ directory")
        if relative_path in written:
            raise BagBuildError(f"Payload path {relative_path!r} would be written twice")
        destination.parent.mkdir(parents=True, exist_ok=True)
        return destination

    def _stage_members(self, package: "DataPackage", bag_dir: Path, written: List[str]) -> List[tuple[str, str]]:
        """Copies or writes every member into data/ and returns (identifier, path) pairs."""
        payload: List[tuple[str, str]] = []
        for member in package.members():
            identifier = member.identifier
            source = member.external_path()
            if source is not None:
                if not source.is_file():
                    raise MissingPayloadError(f"Error serializing to BagIt format, member {identifier!r} uses file {source} but this file doesn't exist")
                relative_path = f"{PAYLOAD_DIR}/{source.name}"
                shutil.copyfile(source, self._payload_destination(bag_dir, relative_path, written))
            else:
                relative_path = f"{PAYLOAD_DIR}/{identifier}"
                self._payload_destination(bag_dir, relative_path, written).write_bytes(member.read_bytes())
            written.append(relative_path)
            payload.append((identifier, relative_path))
            logger.debug(f"Staged member {identifier!r} as {relative_path}")
        return payload

    def _stage_resource_map(self, package: "DataPackage", bag_dir: Path, written: List[str]) -> tuple[str, str]:
        map_id = self._new_id()
        graph = package.build_resource_map(map_id=map_id, resolve_uri="")
        namespaces = [(iri, prefix) for prefix, iri in self.config.namespaces.items()]
        text = serialize(graph, "rdfxml", mime_type="application/rdf+xml", namespaces=namespaces)
        relative_path = f"{PAYLOAD_DIR}/{map_id}{RESOURCE_MAP_SUFFIX}"
        self._payload_destination(bag_dir, relative_path, written).write_text(text, encoding="utf-8")
        written.append(relative_path)
        logger.debug(f"Staged resource map {map_id!r} as {relative_path}")
        return map_id, relative_path

    def _compress(self, bag_dir: Path, written: List[str], archive_path: Path) -> Path:
        partial = archive_path.with_name(f"{archive_path.name}.partial")
        try:
            with zipfile.ZipFile(partial, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for relative_path in written:
                    zf.write(bag_dir / relative_path, arcname=relative_path)
            os.replace(partial, archive_path)
        except OSError:
            partial.unlink(missing_ok=True)
            raise
        return archive_path


def write_bag(
    package: "DataPackage",
    archive_path: Optional[Path] = None,
    config: Optional[DataPackConfig] = None,
    clock: Optional[PackageClock] = None,
) -> Path:
    """Writes ``package`` to a BagIt zip archive and returns its path.

    This function is a convenient wrapper around `BagArchiveBuilder`.
    """
    return BagArchiveBuilder(config=config, clock=clock).build(package, archive_path=archive_path)
