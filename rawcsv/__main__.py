from rawcsv.cli import app

app(prog_name="rawcsv")
