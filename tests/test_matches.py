import pytest

from lifecycle.errors import CompetitorCountError, SideCountError
from matches import list_match_types, validate_match, validate_match_composition
from matches.types import MatchSide, MatchTypeTemplate
from matches.validator import parse_sides

SINGLES = MatchTypeTemplate(number_of_sides=2, number_of_competitors=2)
TAG = MatchTypeTemplate(number_of_sides=2, number_of_competitors=4)
BATTLE_ROYAL = MatchTypeTemplate()


class TestComposition:
    def test_singles_match_passes(self):
        validate_match_composition(SINGLES, [{"wrestlers": [1]}, {"wrestlers": [2]}])

    def test_wrong_number_of_sides(self):
        with pytest.raises(SideCountError) as excinfo:
            validate_match_composition(SINGLES, [{"wrestlers": [1]}, {"wrestlers": [2]}, {"wrestlers": [3]}])
        assert excinfo.value.expected == 2
        assert excinfo.value.actual == 3
        assert excinfo.value.message == "Match requires 2 sides, only 3 provided"

    def test_tag_team_counts_as_two_competitors(self):
        validate_match_composition(TAG, [{"tagTeams": [10]}, {"wrestlers": [1, 2]}])
        validate_match_composition(TAG, [{"tag_teams": [10]}, {"tag_teams": [11]}])

    def test_wrong_number_of_competitors(self):
        with pytest.raises(CompetitorCountError) as excinfo:
            validate_match_composition(TAG, [{"tag_teams": [10]}, {"wrestlers": [1]}])
        assert (excinfo.value.expected, excinfo.value.actual) == (4, 3)

    def test_side_count_is_checked_before_sides_are_parsed(self):
        with pytest.raises(SideCountError):
            validate_match_composition(SINGLES, [{"wrestlers": [1]}])

    @pytest.mark.parametrize("sides", [None, [], [{"wrestlers": [1]}, {}], [{"wrestlers": [1]}, None]])
    def test_incomplete_proposals_pass(self, sides):
        validate_match_composition(SINGLES, sides)

    def test_unconstrained_template_accepts_anything(self):
        validate_match_composition(BATTLE_ROYAL, [{"wrestlers": list(range(1, 31))}])
        validate_match_composition(BATTLE_ROYAL, [{"wrestlers": [i]} for i in range(1, 8)])

    def test_parse_sides_accepts_parsed_sides(self):
        sides = parse_sides([MatchSide(wrestlers=(1,)), {"tagteams": ["2"]}])
        assert sides == [MatchSide(wrestlers=(1,)), MatchSide(tag_teams=(2,))]


class TestCatalogue:
    def test_seeded_match_types(self, repo):
        types = {t["slug"]: t for t in list_match_types(repo)}
        assert len(types) == 14
        assert types["singles"]["number_of_sides"] == 2
        assert types["tagteam"]["number_of_competitors"] == 4
        assert types["battleroyal"]["number_of_sides"] is None

    def test_validate_by_slug(self, repo, make_wrestler):
        a, b = make_wrestler(), make_wrestler()
        result = validate_match(repo, match_type="singles", sides=[{"wrestlers": [a]}, {"wrestlers": [b]}])
        assert result["valid"] is True
        assert result["competitors"] == 2
        assert result["match_type"]["slug"] == "singles"

    def test_validate_by_id(self, repo, make_wrestler, make_tag_team):
        a, b = make_wrestler(), make_wrestler()
        team = make_tag_team()
        tagteam_id = {t["slug"]: t["match_type_id"] for t in list_match_types(repo)}["tagteam"]
        result = validate_match(repo, match_type=tagteam_id, sides=[{"tag_teams": [team]}, {"wrestlers": [a, b]}])
        assert result["competitors"] == 4

    def test_validate_reports_composition_errors(self, repo, make_wrestler):
        ids = [make_wrestler() for _ in range(3)]
        with pytest.raises(SideCountError):
            validate_match(repo, match_type="singles", sides=[{"wrestlers": [i]} for i in ids])

    def test_unknown_match_type(self, repo):
        with pytest.raises(KeyError):
            validate_match(repo, match_type="ladder", sides=[])

    def test_unknown_competitor(self, repo, make_wrestler):
        a = make_wrestler()
        with pytest.raises(KeyError):
            validate_match(repo, match_type="singles", sides=[{"wrestlers": [a]}, {"wrestlers": [404]}])
