from urllib.parse import parse_qs

import httpx
import pytest

from epg_scraper.config import settings
from epg_scraper.services.providers import chuan, cntv, tvmao, twmod
from epg_scraper.services.providers.base import ScrapeContext
from tests.conftest import json_response, local_dt, mock_client


def tvmao_payload(*records):
    return {"data": [{"data": [{"times": times, "title": title} for times, title in records]}]}


class TestTvmao:
    """Start-time-only source with gap filling."""

    @pytest.mark.asyncio
    async def test_stale_leftover_dropped(self, now):
        def handler(request):
            assert request.url.params["query"] == "hunanweishi"
            assert request.url.params["resource_id"] == "12520"
            payload = tvmao_payload(("2024/05/01 23:30", "A"), ("2024/05/02 00:10", " B "))
            return json_response(payload, encoding="gbk")

        async with mock_client(handler) as client:
            result = await tvmao.handle("tvmao,湖南卫视:hunanweishi", ScrapeContext(client=client, now=now))

        channel = result["hunanweishi"]
        assert channel.channel_name == "湖南卫视"
        assert channel.process_count == 2
        assert [e.to_dict() for e in channel.diyp_data["2024-05-02"]] == [
            {"start": "00:10", "end": "00:00", "title": "B", "desc": ""},
        ]
        assert "2024-05-01" not in channel.diyp_data

    @pytest.mark.asyncio
    async def test_schedule_stitched_across_midnight(self, now):
        def handler(request):
            payload = tvmao_payload(
                ("2024/05/01 01:00", "夜间节目"),
                ("2024/05/01 20:00", "新闻联播"),
                ("2024/05/01 22:00", "电影"),
                ("2024/05/02 06:00", "早间新闻"),
            )
            return json_response(payload, encoding="gbk")

        async with mock_client(handler) as client:
            result = await tvmao.handle("tvmao,hunanweishi", ScrapeContext(client=client, now=now))

        diyp = result["hunanweishi"].diyp_data
        assert [(e.start, e.end, e.title) for e in diyp["2024-05-01"]] == [
            ("01:00", "20:00", "夜间节目"),
            ("20:00", "22:00", "新闻联播"),
            ("22:00", "00:00", "电影"),
        ]
        assert [(e.start, e.end, e.title) for e in diyp["2024-05-02"]] == [
            ("00:00", "06:00", "电影"),
            ("06:00", "00:00", "早间新闻"),
        ]
        assert result["hunanweishi"].channel_name == ""

    @pytest.mark.asyncio
    async def test_records_without_times_skipped(self, now):
        def handler(request):
            payload = {"data": [{"data": [
                {"title": "no time"},
                {"times": "garbage", "title": "bad time"},
                {"times": "2024/05/02 07:00", "title": "ok"},
            ]}]}
            return json_response(payload, encoding="gbk")

        async with mock_client(handler) as client:
            result = await tvmao.handle("tvmao,x:1", ScrapeContext(client=client, now=now))

        assert result["1"].process_count == 3
        assert [e.title for e in result["1"].diyp_data["2024-05-02"]] == ["ok"]

    @pytest.mark.asyncio
    async def test_empty_data_still_reports_channel(self, now):
        async with mock_client(lambda request: json_response({"data": []})) as client:
            result = await tvmao.handle("tvmao,a:1,b:2", ScrapeContext(client=client, now=now))

        assert list(result) == ["1", "2"]
        assert all(ch.process_count == 0 and ch.diyp_data == {} for ch in result.values())

    @pytest.mark.asyncio
    async def test_server_error_still_reports_channel(self, now):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            result = await tvmao.handle("tvmao,a:1", ScrapeContext(client=client, now=now))

        assert result["1"].process_count == 0
        assert result["1"].diyp_data == {}


class TestCntv:
    """Epoch-timed source, one request per day."""

    @pytest.mark.asyncio
    async def test_days_and_epoch_conversion(self, now):
        requested = []

        def handler(request):
            channel, day = request.url.params["c"], request.url.params["d"]
            requested.append(day)
            assert request.url.params["serviceId"] == "tvcctv"
            start = local_dt(2024, 5, 1 if day == "20240501" else 2, 19, 0)
            programs = [{
                "startTime": int(start.timestamp()),
                "endTime": int(start.timestamp()) + 1800,
                "title": f" 新闻 {day} ",
            }]
            return json_response({"data": {channel: {"list": programs}}})

        async with mock_client(handler) as client:
            result = await cntv.handle("cntv:2,CCTV-1 综合:CCTV1", ScrapeContext(client=client, now=now))

        assert sorted(requested) == ["20240501", "20240502"]
        channel = result["cctv1"]
        assert channel.channel_name == "CCTV1综合"
        assert channel.process_count == 2
        assert list(channel.diyp_data) == ["2024-05-01", "2024-05-02"]
        assert channel.diyp_data["2024-05-01"][0].to_dict() == {
            "start": "19:00", "end": "19:30", "title": "新闻 20240501", "desc": "",
        }

    @pytest.mark.asyncio
    async def test_failed_day_contributes_nothing(self, now):
        def handler(request):
            if request.url.params["d"] == "20240501":
                return httpx.Response(404)
            start = local_dt(2024, 5, 2, 8, 0)
            programs = [{"startTime": int(start.timestamp()), "endTime": int(start.timestamp()) + 600, "title": "X"}]
            return json_response({"data": {"cctv5": {"list": programs}}})

        async with mock_client(handler) as client:
            result = await cntv.handle("cntv:2,cctv5", ScrapeContext(client=client, now=now))

        assert list(result["cctv5"].diyp_data) == ["2024-05-02"]
        assert result["cctv5"].process_count == 1

    @pytest.mark.asyncio
    async def test_missing_structure_and_default_day(self, now):
        requested = []

        def handler(request):
            requested.append(request.url.params["d"])
            return json_response({"errcode": 1})

        async with mock_client(handler) as client:
            result = await cntv.handle("cntv,CCTV4:cctv4", ScrapeContext(client=client, now=now))

        assert requested == ["20240501"]
        assert result["cctv4"].diyp_data == {}


class TestChuan:
    """Bearer-authenticated source with a mandatory day count."""

    @pytest.mark.asyncio
    async def test_records_normalized(self, now):
        def handler(request):
            assert request.headers["Authorization"] == f"Bearer {settings.chuan_bearer_token}"
            assert request.url.params["begin_time"] == "2024-05-01 00:00:00"
            assert request.url.params["end_time"] == "2024-05-01 23:59:59"
            return json_response({
                "ret_status": 0,
                "ret_data": [
                    {"begin_time": "2024-05-01 08:00:00", "end_time": "2024-05-01 09:45:00",
                     "name": " 功夫 ", "desc": " 动作片 "},
                    {"begin_time": "2024-05-01 10:00:00", "end_time": "2024-05-01 11:00:00"},
                ],
            })

        async with mock_client(handler) as client:
            result = await chuan.handle("chuan:1,CHC高清电影:3418", ScrapeContext(client=client, now=now))

        channel = result["3418"]
        assert channel.process_count == 1
        assert [e.to_dict() for e in channel.diyp_data["2024-05-01"]] == [
            {"start": "08:00", "end": "09:45", "title": "功夫", "desc": "动作片"},
        ]

    @pytest.mark.asyncio
    async def test_missing_day_count_is_empty(self, now):
        def handler(request):
            raise AssertionError("no request expected")

        async with mock_client(handler) as client:
            result = await chuan.handle("chuan,CHC:3418", ScrapeContext(client=client, now=now))

        assert result == {}

    @pytest.mark.asyncio
    async def test_rejected_and_unreachable_days_swallowed(self, now):
        def handler(request):
            if request.url.params["begin_time"].startswith("2024-05-01"):
                raise httpx.ConnectError("unreachable", request=request)
            return json_response({"ret_status": 1, "ret_msg": "denied"})

        async with mock_client(handler) as client:
            result = await chuan.handle("chuan:2,CHC:3418", ScrapeContext(client=client, now=now))

        assert result["3418"].diyp_data == {}
        assert result["3418"].process_count == 0


class TestTwmod:
    """Form-POST source preserving status codes."""

    @pytest.mark.asyncio
    async def test_form_post_and_id_expansion(self, now):
        def handler(request):
            assert request.method == "POST"
            form = parse_qs(request.content.decode())
            assert form["contentPk"] == ["MOD_LIVE_0000000005"]
            day = form["date"][0]
            return json_response([
                {"startTimeVal": "06:00", "endTimeVal": "07:00", "programName": f" 新聞 {day} ", "timeClass": "live"},
            ])

        async with mock_client(handler) as client:
            result = await twmod.handle("twmod:2,民視HD:005", ScrapeContext(client=client, now=now))

        channel = result["MOD_LIVE_0000000005"]
        assert channel.channel_name == "民視HD"
        assert channel.process_count == 2
        assert list(channel.diyp_data) == ["2024-05-01", "2024-05-02"]
        assert channel.diyp_data["2024-05-02"][0].to_dict() == {
            "start": "06:00", "end": "07:00", "title": "新聞 2024-05-02", "desc": "", "status": "live",
        }

    @pytest.mark.asyncio
    async def test_without_day_count(self, now):
        seen = []

        def handler(request):
            seen.append(parse_qs(request.content.decode())["contentPk"][0])
            return json_response({"error": "not a list"})

        async with mock_client(handler) as client:
            result = await twmod.handle("twmod:民視:005,MOD_LIVE_X", ScrapeContext(client=client, now=now))

        assert sorted(seen) == ["MOD_LIVE_0000000005", "MOD_LIVE_X"]
        assert list(result) == ["MOD_LIVE_0000000005", "MOD_LIVE_X"]
        assert result["MOD_LIVE_X"].channel_name == ""
        assert all(ch.diyp_data == {} for ch in result.values())

    def test_match_requires_colon(self):
        assert twmod.match("twmod:1,a:005")
        assert twmod.match("TWMOD:a:005")
        assert not twmod.match("twmod,a:005")

    @pytest.mark.asyncio
    async def test_leading_bare_number_is_day_count(self, now):
        days = []

        def handler(request):
            form = parse_qs(request.content.decode())
            assert form["contentPk"] == ["MOD_LIVE_0000000006"]
            days.append(form["date"][0])
            return json_response([])

        async with mock_client(handler) as client:
            result = await twmod.handle("twmod:005,006", ScrapeContext(client=client, now=now))

        assert list(result) == ["MOD_LIVE_0000000006"]
        assert sorted(days) == ["2024-05-01", "2024-05-02", "2024-05-03", "2024-05-04", "2024-05-05"]
