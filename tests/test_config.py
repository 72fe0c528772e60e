from pathlib import Path

import pytest

from ec2_runner.config import (
    ConfigError,
    RunnerConfig,
    generate_unique_label,
    load_config,
    parse_bool,
    parse_tags,
)

TAGS_JSON = '[{"Key": "Team", "Value": "ci"}, {"Key": "Cost", "Value": "42"}]'


class TestTagSpecifications:
    def test_empty_without_tags(self):
        assert RunnerConfig().tag_specifications == []

    def test_instance_and_volume(self):
        config = RunnerConfig(resource_tags=({"Key": "Team", "Value": "ci"},))
        assert config.tag_specifications == [
            {"ResourceType": "instance", "Tags": [{"Key": "Team", "Value": "ci"}]},
            {"ResourceType": "volume", "Tags": [{"Key": "Team", "Value": "ci"}]},
        ]


class TestParsing:
    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", True])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", False])
    def test_false(self, value):
        assert parse_bool(value) is False

    def test_invalid_bool(self):
        with pytest.raises(ConfigError, match="Invalid boolean for spot"):
            parse_bool("maybe", name="spot")

    @pytest.mark.parametrize("value", [1, 0, None, ["true"]])
    def test_non_text_bool(self, value):
        with pytest.raises(ConfigError, match="Invalid boolean for spot"):
            parse_bool(value, name="spot")

    def test_tags_json(self):
        assert parse_tags(TAGS_JSON) == (
            {"Key": "Team", "Value": "ci"},
            {"Key": "Cost", "Value": "42"},
        )

    def test_tags_blank(self):
        assert parse_tags("  ") == ()

    def test_tags_invalid_json(self):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            parse_tags("[{")

    def test_tags_missing_value(self):
        with pytest.raises(ConfigError, match="need Key and Value"):
            parse_tags('[{"Key": "Team"}]')

    def test_tags_not_a_list(self):
        with pytest.raises(ConfigError, match="must be a list"):
            parse_tags('{"Key": "Team", "Value": "ci"}')


class TestLoadConfig:
    def test_action_inputs(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        environ = {
            "GITHUB_REPOSITORY": "octo-org/octo-repo",
            "INPUT_EC2-IMAGE-ID": "ami-1",
            "INPUT_EC2-INSTANCE-TYPE": "t3.micro",
            "INPUT_SUBNET-ID": "subnet-1",
            "INPUT_SECURITY-GROUP-ID": "sg-1",
            "INPUT_IAM-ROLE-NAME": "role",
            "INPUT_KEY-NAME": "my-key",
            "INPUT_SPOT-INSTANCE": "true",
            "INPUT_ASSIGN-PUBLIC-IP-TO-INSTANCE": "false",
            "INPUT_RUNNER-HOME-DIR": "/home/runner/actions-runner",
            "INPUT_PRE-RUNNER-SCRIPT": "apt-get update",
            "INPUT_AWS-RESOURCE-TAGS": TAGS_JSON,
            "INPUT_EC2-INSTANCE-ID": "i-1",
            "INPUT_LABEL": "ci-xyz",
        }
        config = load_config(environ=environ)
        assert config == RunnerConfig(
            owner="octo-org",
            repo="octo-repo",
            ec2_image_id="ami-1",
            ec2_instance_type="t3.micro",
            subnet_id="subnet-1",
            security_group_id="sg-1",
            iam_role_name="role",
            key_name="my-key",
            spot_instance=True,
            assign_public_ip=False,
            runner_home_dir="/home/runner/actions-runner",
            pre_runner_script="apt-get update",
            resource_tags=({"Key": "Team", "Value": "ci"}, {"Key": "Cost", "Value": "42"}),
            ec2_instance_id="i-1",
            label="ci-xyz",
        )

    def test_toml_only(self, tmp_path: Path):
        toml = tmp_path / "ec2-runner.toml"
        toml.write_text(
            '[runner]\n'
            'owner = "octo"\n'
            'repo = "app"\n'
            'region = "eu-west-1"\n'
            'spot_instance = true\n'
            'resource_tags = [{ Key = "Team", Value = "ci" }]\n'
        )
        config = load_config(path=toml, environ={})
        assert config.owner == "octo"
        assert config.region == "eu-west-1"
        assert config.spot_instance is True
        assert config.resource_tags == ({"Key": "Team", "Value": "ci"},)

    def test_inputs_override_toml(self, tmp_path: Path):
        toml = tmp_path / "ec2-runner.toml"
        toml.write_text('[runner]\nec2_instance_type = "t3.micro"\nsubnet_id = "subnet-file"\n')
        config = load_config(path=toml, environ={"INPUT_EC2-INSTANCE-TYPE": "c7g.large"})
        assert config.ec2_instance_type == "c7g.large"
        assert config.subnet_id == "subnet-file"

    def test_aws_region_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={"AWS_REGION": "us-west-2"})
        assert config.region == "us-west-2"

    def test_unknown_setting(self, tmp_path: Path):
        toml = tmp_path / "ec2-runner.toml"
        toml.write_text('[runner]\nami = "ami-1"\n')
        with pytest.raises(ConfigError, match="Unknown runner settings: ami"):
            load_config(path=toml, environ={})

    def test_no_sources(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_config(environ={}) == RunnerConfig()

    def test_default_file_in_working_dir(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "ec2-runner.toml").write_text('[runner]\nsubnet_id = "subnet-cwd"\n')
        assert load_config(environ={}).subnet_id == "subnet-cwd"

    def test_explicit_path_must_exist(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Config file not found: .*typo.toml"):
            load_config(path=tmp_path / "typo.toml", environ={})

    @pytest.mark.parametrize("value", ["1", "[]", '"sometimes"'])
    def test_toml_bool_must_be_bool_or_text(self, tmp_path: Path, value):
        toml = tmp_path / "ec2-runner.toml"
        toml.write_text(f"[runner]\nspot_instance = {value}\n")
        with pytest.raises(ConfigError, match="Invalid boolean for spot_instance"):
            load_config(path=toml, environ={})


class TestValidation:
    def test_start_lists_missing(self):
        with pytest.raises(ConfigError, match="ec2_image_id, ec2_instance_type"):
            RunnerConfig(owner="o", repo="r").validate_for_start()

    def test_start_ok(self, config: RunnerConfig):
        config.validate_for_start()

    def test_stop_requires_instance_id(self):
        with pytest.raises(ConfigError, match="ec2_instance_id"):
            RunnerConfig().validate_for_stop()


def test_generate_unique_label():
    label = generate_unique_label()
    assert len(label) == 5
    assert label.isalnum() and label == label.lower()
