"""A small USGS-style catalog used across the tests."""

HEADER = "time,latitude,longitude,depth,mag,magType,net,id,updated,place,type"

ROWS = [
    "2020-01-24T17:55:14.000Z,38.43,39.06,10.0,6.7,mww,us,us60007ewc,2020-04-01T00:00:00.000Z,Sivrice,earthquake",
    "2020-10-30T11:51:27.000Z,37.90,26.79,21.0,7.0,mww,us,us7000c7y0,2021-01-01T00:00:00.000Z,Samos,earthquake",
    "2021-06-01T03:12:00.000Z,39.10,35.20,8.0,4.2,mb,us,us7000e1aa,2021-07-01T00:00:00.000Z,Kirsehir,earthquake",
    "2023-02-06T01:17:34.000Z,37.23,37.01,10.0,7.8,mww,us,us6000jllz,2023-05-01T00:00:00.000Z,Pazarcik,earthquake",
    "2023-02-06T10:24:48.000Z,38.02,37.20,7.4,7.5,mww,us,us6000jlqa,2023-05-01T00:00:00.000Z,Elbistan,earthquake",
    "2023-02-20T17:04:29.000Z,36.11,36.02,16.0,6.3,mww,us,us6000jqxc,2023-05-01T00:00:00.000Z,Uzunbag,earthquake",
]


def csv_text(rows):
    return "\n".join([HEADER, *rows]) + "\n"
