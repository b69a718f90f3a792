"""
Integration tests for the parallel corpus preparation pipeline.
"""
import io
import logging
import os
import tarfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
import yaml

from conftest import FakeToolkit, write_lines
from parallel_corpus_processor.models.core import ToolFailurePolicy
from parallel_corpus_processor.models.languages import ENGLISH, GERMAN, VIETNAMESE
from parallel_corpus_processor.pipeline import (
    CorpusAlignmentError,
    CorpusManifestBuilder,
    CorpusPipeline,
    PipelineConfig,
    create_config_from_dict,
    create_default_config,
    validate_alignment
)
from parallel_corpus_processor.processors.downloader import DownloadError
from parallel_corpus_processor.sources import IWSLT15Dataset, RemoteDataset, TedTalksDataset
from parallel_corpus_processor.tools.moses import MosesToolkit, ToolError
from parallel_corpus_processor.utils.logging import PipelineLogger


IWSLT_FILES = {
    "train.en": b"hello world\ngood morning\n",
    "train.vi": b"xin chao\nchao buoi sang\n",
    "tst2012.en": b"thank you\n",
    "tst2012.vi": b"cam on\n",
    "tst2013.en": b"bye\n",
    "tst2013.vi": b"tam biet\n",
    "vocab.en": b"<unk>\nhello\n",
    "vocab.vi": b"<unk>\nxin\n",
}


def serve(files):
    """Build a requests.get replacement serving ``files`` by URL filename."""
    def get(url, stream=True, timeout=None):
        response = MagicMock()
        content = files.get(url.rsplit("/", 1)[-1])
        if content is None:
            response.raise_for_status.side_effect = requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
            return response
        response.headers = {"content-length": str(len(content))}
        response.raw.stream.return_value = iter([content])
        return response
    return get


def tar_gz(members):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def write_ted_corpus(source: TedTalksDataset):
    for split, lines in (("train", 4), ("dev", 2), ("test", 2)):
        for language in (source.src, source.tgt):
            words = [" ".join([f"{language}{i}"] * (i + 1)) for i in range(lines)]
            write_lines(source.download_dir / f"{split}.{source.pair_prefix}.{language}", words)


class TestPipelineConfig:
    """Test pipeline configuration."""

    def test_default_config_creation(self, monkeypatch):
        monkeypatch.delenv("MOSES_DIR", raising=False)
        config = create_default_config()

        assert config.working_dir == "data"
        assert config.datasets_yaml_path == "datasets.yaml"
        assert config.buffer_size == 8192
        assert config.tokenize is False
        assert config.train_length_bounds is None
        assert config.vocab_size_threshold == 50000
        assert config.vocab_count_threshold == -1
        assert config.on_tool_failure is ToolFailurePolicy.COPY_THROUGH
        assert config.toolkit_dir is None
        assert config.progress_interval == 10.0

    def test_config_from_dict(self):
        config = create_config_from_dict({
            "working_dir": "corpora",
            "tokenize": True,
            "train_length_bounds": [1, 80],
            "on_tool_failure": "abort",
            "unknown_option": 1
        })

        assert config.working_dir == "corpora"
        assert config.tokenize is True
        assert config.train_length_bounds == (1, 80)
        assert config.on_tool_failure is ToolFailurePolicy.ABORT

    def test_config_validation(self):
        with pytest.raises(ValueError, match="buffer_size must be positive"):
            PipelineConfig(buffer_size=0)

        with pytest.raises(ValueError, match="vocab_size_threshold must be positive"):
            PipelineConfig(vocab_size_threshold=0)

        with pytest.raises(ValueError, match="0 <= min <= max"):
            PipelineConfig(train_length_bounds=(10, 5))

        with pytest.raises(ValueError, match="Invalid on_tool_failure"):
            PipelineConfig(on_tool_failure="ignore")

        with pytest.raises(ValueError, match="working_dir cannot be empty"):
            PipelineConfig(working_dir="")

    def test_toolkit_dir_from_environment(self):
        with patch.dict(os.environ, {"MOSES_DIR": "/opt/moses"}):
            assert PipelineConfig().toolkit_dir == "/opt/moses"
            assert PipelineConfig(toolkit_dir="/srv/moses").toolkit_dir == "/srv/moses"


class TestCorpusManifestBuilder:
    """End-to-end tests of manifest assembly with a fake toolkit."""

    def setup_method(self):
        self.toolkit = FakeToolkit()
        self.logger = PipelineLogger()

    def builder(self, tmp_path, **overrides):
        config = PipelineConfig(working_dir=str(tmp_path), toolkit_dir=str(tmp_path / "moses"), **overrides)
        return CorpusManifestBuilder(config, logger=self.logger, toolkit=self.toolkit)

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_iwslt15_end_to_end(self, mock_get, tmp_path):
        mock_get.side_effect = serve(IWSLT_FILES)
        source = IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE)

        files = self.builder(tmp_path).build(source)

        download_dir = tmp_path / "iwslt-15"
        assert mock_get.call_count == 8
        assert files.train_corpora[0].source_file == download_dir / "train.en"
        assert files.train_corpora[0].source_file.read_bytes() == IWSLT_FILES["train.en"]
        assert files.dev_corpora[0].target_file == download_dir / "tst2012.vi"
        assert files.vocabularies == (download_dir / "vocab.en", download_dir / "vocab.vi")
        assert self.logger.stats.vocabularies_built == 0

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_second_run_performs_no_work(self, mock_get, tmp_path):
        mock_get.side_effect = serve(IWSLT_FILES)
        source = IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE)
        first = self.builder(tmp_path, tokenize=True).build(source)

        mock_get.reset_mock()
        self.toolkit.calls.clear()
        self.logger = PipelineLogger()
        second = self.builder(tmp_path, tokenize=True).build(source)

        assert second == first
        mock_get.assert_not_called()
        assert self.toolkit.calls == []
        assert not self.logger.stats.performed_work

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_tokenization_skips_vocabularies(self, mock_get, tmp_path):
        mock_get.side_effect = serve(IWSLT_FILES)
        source = IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE)

        files = self.builder(tmp_path, tokenize=True).build(source)

        tokenized = {call[1].name for call in self.toolkit.tool_calls("tokenizer")}
        assert tokenized == {"train.en", "train.vi", "tst2012.en", "tst2012.vi", "tst2013.en", "tst2013.vi"}
        assert files.train_corpora[0].source_file.name == "train.tok.en"
        assert files.train_corpora[0].source_file.read_text() == "HELLO WORLD\nGOOD MORNING\n"
        assert files.vocabularies[0].name == "vocab.en"

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_tokenizer_failure_degrades_gracefully(self, mock_get, tmp_path):
        mock_get.side_effect = serve(IWSLT_FILES)
        self.toolkit.failing.add("tokenizer")
        source = IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE)

        files = self.builder(tmp_path, tokenize=True).build(source)

        train = files.train_corpora[0]
        assert train.source_file.name == "train.tok.en"
        assert train.source_file.read_bytes() == IWSLT_FILES["train.en"]
        assert len(self.logger.failures) == 6
        assert all(failure.fallback_applied for failure in self.logger.failures)

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_abort_policy_stops_pipeline(self, mock_get, tmp_path):
        mock_get.side_effect = serve(IWSLT_FILES)
        self.toolkit.failing.add("tokenizer")
        source = IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE)

        with pytest.raises(ToolError):
            self.builder(tmp_path, tokenize=True, on_tool_failure="abort").build(source)

        assert not list((tmp_path / "iwslt-15").glob("*.tok.*"))

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_download_failure_is_fatal(self, mock_get, tmp_path):
        files = dict(IWSLT_FILES)
        del files["tst2013.vi"]
        mock_get.side_effect = serve(files)

        with pytest.raises(DownloadError):
            self.builder(tmp_path).build(IWSLT15Dataset(tmp_path, ENGLISH, VIETNAMESE))

        assert not (tmp_path / "iwslt-15" / "tst2013.vi").exists()

    def test_ted_talks_derives_vocabularies(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)

        files = self.builder(tmp_path, vocab_size_threshold=2).build(source)

        assert files.vocabularies == (source.working_dir / "vocab.de", source.working_dir / "vocab.en")
        assert files.vocabularies[0].read_text() == "de1\nde3\n"
        assert self.logger.stats.vocabularies_built == 2

    def test_vocabularies_of_reversed_pairs_do_not_collide(self, tmp_path):
        forward = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        backward = TedTalksDataset(tmp_path, ENGLISH, GERMAN)
        write_ted_corpus(forward)

        forward_files = self.builder(tmp_path).build(forward)
        backward_files = self.builder(tmp_path).build(backward)

        assert forward_files.vocabularies[0].name == "vocab.de"
        assert backward_files.vocabularies[0].name == "vocab.en"
        assert forward_files.vocabularies[0].parent != backward_files.vocabularies[0].parent

    def test_cleaning_applies_to_train_only(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)

        files = self.builder(tmp_path, train_length_bounds=(1, 2)).build(source)

        train = files.train_corpora[0]
        assert train.source_file.name == f"train.{source.pair_prefix}.clean.de"
        assert train.source_file.read_text() == "de0\nde1 de1\n"
        assert train.target_file.read_text() == "en0\nen1 en1\n"
        assert files.dev_corpora[0].source_file.name == f"dev.{source.pair_prefix}.de"
        assert files.test_corpora[0].target_file.name == f"test.{source.pair_prefix}.en"
        assert len(self.toolkit.tool_calls("clean-corpus-n")) == 1

    def test_vocabularies_use_uncleaned_corpora(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)

        files = self.builder(tmp_path, train_length_bounds=(1, 1)).build(source)

        assert "de3" in files.vocabularies[0].read_text().split()

    def test_missing_corpus_file(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)
        (source.download_dir / f"test.{source.pair_prefix}.en").unlink()

        with pytest.raises(FileNotFoundError, match="TED-Talks - Missing corpus file for 'TED/Test'"):
            self.builder(tmp_path).build(source)

    def test_misaligned_corpus(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)
        write_lines(source.download_dir / f"dev.{source.pair_prefix}.en", ["only one line"])

        with pytest.raises(CorpusAlignmentError, match="TED/Dev"):
            self.builder(tmp_path).build(source)

    def test_alignment_validation_can_be_disabled(self, tmp_path):
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)
        write_lines(source.download_dir / f"dev.{source.pair_prefix}.en", ["only one line"])

        files = self.builder(tmp_path, validate_alignment=False).build(source)

        with pytest.raises(CorpusAlignmentError):
            validate_alignment(files)

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_remote_archive_with_sgm_dev_set(self, mock_get, tmp_path):
        sgm = (
            '<srcset setid="newstest2013" srclang="any">\n<doc docid="1">\n'
            '<seg id="1"> {} </seg>\n</doc>\n</srcset>\n'
        )
        archive = tar_gz({
            "train.de": b"hallo welt\n",
            "train.en": b"hello world\n",
            "dev.de.sgm": sgm.format("guten tag").encode("utf-8"),
            "dev.en.sgm": sgm.format("good day").encode("utf-8"),
        })
        mock_get.side_effect = serve({"news.tgz": archive})
        source = RemoteDataset(
            tmp_path, GERMAN, ENGLISH, name="News", base_url="http://example.com/data",
            files=["news.tgz"], train=["news/train"], dev=["news/dev"]
        )

        files = self.builder(tmp_path).build(source)

        assert files.dev_corpora[0].source_file == tmp_path / "news" / "news" / "dev.de"
        assert files.dev_corpora[0].source_file.read_text() == "guten tag\n"
        assert files.train_corpora[0].tag == "News/Train"
        assert self.logger.stats.archives_extracted == 1
        assert files.vocabularies == (source.working_dir / "vocab.de", source.working_dir / "vocab.en")

    @patch("parallel_corpus_processor.processors.downloader.requests.get")
    def test_two_file_remote_dataset(self, mock_get, tmp_path):
        mock_get.side_effect = serve({"train.en": b"hello world\n", "train.vi": b"xin chao\n"})
        source = RemoteDataset(
            tmp_path, ENGLISH, VIETNAMESE, name="Tiny", base_url="http://example.com/tiny",
            files=["train.en", "train.vi"], train=["train"]
        )
        vocabularies = (source.working_dir / "vocab.en", source.working_dir / "vocab.vi")
        assert not any(path.exists() for path in vocabularies)

        files = self.builder(tmp_path).build(source)

        assert len(files.train_corpora) == 1
        entry = files.train_corpora[0]
        assert entry.tag == "Tiny/Train"
        assert entry.source_file == tmp_path / "tiny" / "train.en"
        assert entry.target_file.read_bytes() == b"xin chao\n"
        assert files.vocabularies == vocabularies
        assert all(path.exists() for path in vocabularies)

    def test_default_toolkit_location(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MOSES_DIR", raising=False)
        builder = CorpusManifestBuilder(PipelineConfig(working_dir=str(tmp_path)), logger=self.logger)
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)

        toolkit = builder.toolkit_for(source)

        assert isinstance(toolkit, MosesToolkit)
        assert toolkit.root == tmp_path / "ted-talks" / "moses"

    @patch("parallel_corpus_processor.tools.moses.subprocess.run")
    def test_run_without_tool_work_never_clones_toolkit(self, mock_run, tmp_path, monkeypatch):
        monkeypatch.delenv("MOSES_DIR", raising=False)
        source = TedTalksDataset(tmp_path, GERMAN, ENGLISH)
        write_ted_corpus(source)
        builder = CorpusManifestBuilder(PipelineConfig(working_dir=str(tmp_path)), logger=self.logger)

        builder.build(source)

        mock_run.assert_not_called()


class TestCorpusPipeline:
    """Tests of the configuration-driven orchestrator."""

    def setup_method(self):
        self.toolkit = FakeToolkit()

    def write_datasets(self, tmp_path, data):
        path = tmp_path / "datasets.yaml"
        path.write_text(yaml.dump(data), encoding="utf-8")
        return str(path)

    def make_pipeline(self, tmp_path, data, **overrides):
        config = PipelineConfig(
            working_dir=str(tmp_path / "data"),
            datasets_yaml_path=self.write_datasets(tmp_path, data),
            toolkit_dir=str(tmp_path / "moses"),
            log_dir=str(tmp_path / "logs"),
            **overrides
        )
        return CorpusPipeline(config, toolkit=self.toolkit)

    def test_run_all_datasets(self, tmp_path):
        pipeline = self.make_pipeline(tmp_path, {
            "ted_de_en": {"kind": "ted_talks", "source_language": "de", "target_language": "en"}
        })
        write_ted_corpus(TedTalksDataset(tmp_path / "data", GERMAN, ENGLISH))

        manifests = pipeline.run()

        assert list(manifests) == ["ted_de_en"]
        assert manifests["ted_de_en"].vocabularies is not None
        stats = pipeline.get_processing_stats()
        assert stats["vocabularies_built"] == 2
        assert stats["failures"] == []
        assert "duration_seconds" in stats

    def test_run_selected_datasets(self, tmp_path):
        pipeline = self.make_pipeline(tmp_path, {
            "ted_de_en": {"kind": "ted_talks", "source_language": "de", "target_language": "en"},
            "iwslt": {"kind": "iwslt15", "source_language": "en", "target_language": "vi"}
        })
        write_ted_corpus(TedTalksDataset(tmp_path / "data", GERMAN, ENGLISH))

        manifests = pipeline.run(["ted_de_en"])

        assert list(manifests) == ["ted_de_en"]

    def test_unknown_dataset_name(self, tmp_path):
        pipeline = self.make_pipeline(tmp_path, {
            "ted_de_en": {"kind": "ted_talks", "source_language": "de", "target_language": "en"}
        })

        with pytest.raises(ValueError, match="Unknown datasets: missing"):
            pipeline.run(["missing"])

    def test_failures_are_reported(self, tmp_path, caplog):
        self.toolkit.failing.add("tokenizer")
        pipeline = self.make_pipeline(tmp_path, {
            "ted_de_en": {"kind": "ted_talks", "source_language": "de", "target_language": "en"}
        }, tokenize=True)
        write_ted_corpus(TedTalksDataset(tmp_path / "data", GERMAN, ENGLISH))

        with caplog.at_level(logging.WARNING, logger="parallel_corpus_processor"):
            pipeline.run()

        assert "6 tool failures were absorbed" in caplog.text

        assert len(pipeline.get_processing_stats()["failures"]) == 6
        assert list((tmp_path / "logs").glob("failure_report_*.json"))

    def test_validate_configuration(self, tmp_path):
        pipeline = self.make_pipeline(tmp_path, {
            "iwslt": {"kind": "iwslt15", "source_language": "en", "target_language": "vi"}
        })

        results = pipeline.validate_configuration()

        assert results["valid"] is True
        assert results["errors"] == []

    def test_validate_configuration_unsupported_pair(self, tmp_path):
        pipeline = self.make_pipeline(tmp_path, {
            "iwslt": {"kind": "iwslt15", "source_language": "en", "target_language": "de"}
        })

        results = pipeline.validate_configuration()

        assert results["valid"] is False
        assert "not supported by the IWSLT-15 dataset" in results["errors"][0]

    def test_validate_configuration_missing_file(self, tmp_path):
        config = PipelineConfig(working_dir=str(tmp_path), datasets_yaml_path=str(tmp_path / "missing.yaml"))

        results = CorpusPipeline(config, toolkit=self.toolkit).validate_configuration()

        assert results["valid"] is False
        assert "not found" in results["errors"][0]
