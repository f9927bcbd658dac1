from nirikdl.cli import main

main()
